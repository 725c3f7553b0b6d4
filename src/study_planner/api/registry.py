"""Registry of named session operations a UI layer can discover and call."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, ConfigDict, create_model
from pydantic import ValidationError as PydanticValidationError

from ..core import ValidationError

if TYPE_CHECKING:
    from ..services import StudySession

logger = logging.getLogger(__name__)

Operation = Callable[..., Any]


def _arguments_model(name: str, signature: inspect.Signature) -> Type[BaseModel]:
    fields: Dict[str, Any] = {}
    for param in signature.parameters.values():
        annotation = Any if param.annotation is inspect.Parameter.empty else param.annotation
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[param.name] = (annotation, default)
    return create_model(f"{name}_arguments", __config__=ConfigDict(extra="forbid"), **fields)


@dataclass(frozen=True)
class ApiFunction:
    """An operation bound to a ``StudySession`` at call time.

    ``arguments`` is built from every parameter after the session; it both
    validates incoming keyword arguments and provides the JSON schema.
    """

    name: str
    func: Operation
    description: str
    category: str
    tags: tuple[str, ...]
    arguments: Type[BaseModel]

    @property
    def parameters(self) -> List[str]:
        return list(self.arguments.model_fields)

    @property
    def parameter_schema(self) -> Dict[str, Any]:
        schema = self.arguments.model_json_schema()
        schema.pop("title", None)
        return schema

    def as_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameter_schema,
            },
        }

    def __call__(self, session: "StudySession", **kwargs: Any) -> Any:
        try:
            parsed = self.arguments.model_validate(kwargs)
        except PydanticValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
                for error in exc.errors()
            )
            raise ValidationError(f"{self.name}: {problems}") from exc
        values = {field: getattr(parsed, field) for field in self.arguments.model_fields}
        logger.debug("Calling %s with %s", self.name, sorted(values))
        return self.func(session, **values)


REGISTRY: Dict[str, ApiFunction] = {}


def register_api(
    name: str,
    *,
    description: str,
    category: str,
    tags: Optional[Iterable[str]] = None,
) -> Callable[[Operation], Operation]:
    def decorator(func: Operation) -> Operation:
        if name in REGISTRY:
            raise ValueError(f"API function '{name}' is already registered.")
        signature = inspect.signature(func, eval_str=True)
        # the first parameter is always the session
        public = signature.replace(parameters=list(signature.parameters.values())[1:])
        REGISTRY[name] = ApiFunction(
            name=name,
            func=func,
            description=description,
            category=category,
            tags=tuple(tags or ()),
            arguments=_arguments_model(name, public),
        )
        return func

    return decorator


def get_api_functions(category: Optional[str] = None) -> List[ApiFunction]:
    return [fn for fn in REGISTRY.values() if category is None or fn.category == category]


def call_api(session: "StudySession", name: str, **kwargs: Any) -> Any:
    try:
        api_function = REGISTRY[name]
    except KeyError:
        raise KeyError(f"API function '{name}' is not registered.") from None
    return api_function(session, **kwargs)
