"""Context: a typed, validated hosting node.

A Context variant declares a static Property schema, the capabilities it
provides and requires, and a ``verify()`` planner. Planning never executes
anything; the pipeline runs the returned Tasks.

Lifecycle (see ``data/lifecycle.yaml``)::

    unconfigured -> configured -> verifying -> verified
                 \\-> failed    <-/        \\-> failed
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Iterator, List, Mapping, Optional, Tuple

from provision.core.exceptions import (
    ConfigurationError,
    ProvisionError,
    UnresolvedCapabilityError,
    ValidationError,
)
from provision.core.properties import Property, PropertyBag
from provision.core.properties import validators as v
from provision.core.registries.capabilities import DEFAULT_SCOPE
from provision.core.state import ContextState, LifecycleMachine, default_lifecycle

if TYPE_CHECKING:
    from provision.core.inventory import Inventory
    from provision.core.tasks import Runtime, Task

logger = logging.getLogger(__name__)


@dataclass
class Failure:
    """Why a Context ended up Failed."""

    kind: str
    message: str
    task_id: Optional[str] = None

    @classmethod
    def from_error(cls, error: ProvisionError, task_id: Optional[str] = None) -> "Failure":
        return cls(error.kind, str(error), task_id)

    def to_dict(self) -> Dict[str, Any]:
        data = {"error": self.kind, "message": self.message}
        if self.task_id:
            data["task"] = self.task_id
        return data


class Dependencies(Mapping[str, "Context"]):
    """Resolved providers of one Context, keyed by capability."""

    def __init__(
        self,
        providers: Optional[Mapping[str, "Context"]] = None,
        resolver: Optional[Callable[["Context"], "Dependencies"]] = None,
    ) -> None:
        self._providers: Dict[str, Context] = dict(providers or {})
        self._resolver = resolver

    def __getitem__(self, capability: str) -> "Context":
        try:
            return self._providers[capability]
        except KeyError:
            raise UnresolvedCapabilityError(
                f"No resolved provider for capability {capability!r}", capability=capability
            ) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def names(self) -> Dict[str, str]:
        return {cap: ctx.name for cap, ctx in self._providers.items()}

    def of(self, context: "Context") -> "Dependencies":
        """Providers of another Context (e.g. the web server behind a platform)."""
        if self._resolver is None:
            return Dependencies()
        return self._resolver(context)


BASE_PROPERTIES: Tuple[Property, ...] = (
    Property(
        "scope",
        "Provisioning scope used for capability registration and lookup.",
        default=DEFAULT_SCOPE,
        validator=v.identifier,
    ),
)


class Context(ABC):
    """Base class for Context variants.

    Subclasses set ``type_tag`` (through ``register_context_type``),
    ``properties``, ``requires`` and optionally ``provides`` and
    ``capability_selectors``, and implement ``verify``.
    """

    type_tag: ClassVar[str] = ""
    properties: ClassVar[Tuple[Property, ...]] = ()
    provides: ClassVar[Tuple[str, ...]] = ()
    requires: ClassVar[Tuple[str, ...]] = ()
    # capability -> Property naming the provider Context explicitly
    capability_selectors: ClassVar[Dict[str, str]] = {}

    def __init__(
        self,
        name: str,
        options: Optional[Mapping[str, Any]] = None,
        *,
        lifecycle: Optional[LifecycleMachine] = None,
    ) -> None:
        try:
            self.name = v.identifier(name)
        except ValueError as exc:
            raise ValidationError(f"Invalid context name: {exc}", property_name="name") from exc
        self.options: Dict[str, Any] = dict(options or {})
        self.bag = PropertyBag(self.schema(), owner=self.name)
        self.lifecycle = lifecycle or default_lifecycle()
        self.state = ContextState(self.lifecycle.initial_state)
        self.config_errors: List[ProvisionError] = []
        self.resolution_errors: List[ProvisionError] = []
        self.failure: Optional[Failure] = None
        self.providers: Dict[str, str] = {}
        # Fingerprint of own and provider values at the last successful verification.
        self.verified_fingerprint: Optional[str] = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} [{self.state.value}]>"

    # ------------------------------------------------------------------
    # Schema and capabilities
    # ------------------------------------------------------------------
    @classmethod
    def schema(cls) -> List[Property]:
        return list(BASE_PROPERTIES) + list(cls.properties)

    @classmethod
    def required_capabilities(cls) -> Tuple[str, ...]:
        return tuple(cls.requires)

    def provided_capabilities(self) -> Tuple[str, ...]:
        return tuple(self.provides)

    def option_value(self, name: str) -> Any:
        """Validated value when configured, else the raw option (None if blank)."""
        if name in self.bag:
            return self.bag.peek(name)
        raw = self.options.get(name)
        if isinstance(raw, str):
            raw = raw.strip() or None
        return raw

    @property
    def scope(self) -> str:
        value = self.option_value("scope")
        return str(value) if value else DEFAULT_SCOPE

    def selected_provider(self, capability: str) -> Optional[str]:
        prop = self.capability_selectors.get(capability)
        if not prop:
            return None
        value = self.option_value(prop)
        return str(value) if value else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def transition(self, target: ContextState) -> None:
        self.lifecycle.validate(self.state.value, target.value)
        if target is not self.state:
            logger.info("%s %s: %s -> %s", self.type_tag, self.name, self.state.value, target.value)
        self.state = target

    def fail(self, error: ProvisionError, task_id: Optional[str] = None) -> None:
        self.failure = Failure.from_error(error, task_id)
        self.transition(ContextState.FAILED)

    def fail_task(self, task: "Task") -> None:
        result = task.result
        self.failure = Failure(result.error_kind or "TaskFailure", result.message, task.id)
        self.transition(ContextState.FAILED)

    @property
    def errors(self) -> List[ProvisionError]:
        return [*self.config_errors, *self.resolution_errors]

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def configure(
        self,
        runtime: Optional["Runtime"] = None,
        options: Optional[Mapping[str, Any]] = None,
        *,
        transition: bool = True,
    ) -> List[ProvisionError]:
        """Validate every option and default; collect all errors.

        The Context ends Configured when nothing failed, Failed otherwise.
        With ``transition=False`` only the values are refreshed; providers
        read outside their own run keep their persisted state.
        """
        if options is not None:
            self.options = dict(options)
        self.bag.clear()
        self.failure = None
        self.resolution_errors = []
        errors: List[ProvisionError] = list(self.bag.update(self.options, runtime))
        rejected = {getattr(e, "property_name", None) for e in errors}
        # A rejected required value is reported once, not again as missing.
        errors.extend(e for e in self.bag.apply_defaults(runtime) if e.property_name not in rejected)
        if not errors:
            errors.extend(self.post_configure(runtime))
        self.config_errors = errors
        if not transition:
            return errors
        if errors:
            self.fail(self.configuration_error())
        else:
            self.transition(ContextState.CONFIGURED)
        return errors

    def post_configure(self, runtime: Optional["Runtime"]) -> List[ValidationError]:
        """Derive values from other validated values. Returns errors."""
        return []

    def configuration_error(self) -> ProvisionError:
        errors = self.errors
        if len(errors) == 1:
            return errors[0]
        return ConfigurationError(
            f"{len(errors)} configuration errors for {self.name}: " + "; ".join(str(e) for e in errors),
            errors=errors,
            context={"context": self.name},
        )

    def set(self, name: str, raw: Any, runtime: Optional["Runtime"] = None) -> bool:
        """Set one option. A rejected value leaves the previous one in place
        and puts the Context into Failed with the validation error.
        """
        try:
            self.bag.set(name, raw, runtime)
        except ValidationError as exc:
            logger.warning("%s: rejected %s: %s", self.name, name, exc)
            self.config_errors = [e for e in self.config_errors if getattr(e, "property_name", None) != name]
            self.config_errors.append(exc)
            self.fail(exc)
            return False
        self.options[name] = raw
        self.config_errors = [e for e in self.config_errors if getattr(e, "property_name", None) != name]
        if self.state in (ContextState.CONFIGURED, ContextState.VERIFIED) or (
            self.state is ContextState.FAILED and not self.config_errors
        ):
            self.failure = None
            self.transition(ContextState.CONFIGURED)
        return True

    def get(self, name: str) -> Any:
        return self.bag.get(name)

    def values(self) -> Dict[str, Any]:
        return self.bag.values()

    def fingerprint(self) -> str:
        return self.bag.fingerprint()

    def resolve_dependencies(self, inventory: "Inventory", *, transition: bool = True) -> List[ProvisionError]:
        """Resolve every required capability; collect all failures."""
        providers: Dict[str, str] = {}
        errors: List[ProvisionError] = []
        for capability in self.required_capabilities():
            try:
                providers[capability] = inventory.resolve_provider(self, capability).name
            except UnresolvedCapabilityError as exc:
                errors.append(exc)
        self.providers = providers
        self.resolution_errors = errors
        if errors and transition:
            self.fail(self.configuration_error())
        return errors

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------
    @abstractmethod
    def verify(self, runtime: "Runtime", deps: Dependencies) -> List["Task"]:
        """Return the ordered Tasks that bring this node to its provisioned state."""

    def check_tasks(self, runtime: "Runtime", deps: Dependencies) -> List["Task"]:
        """Authoritative final check(s), re-run by incremental verification."""
        return self.verify(runtime, deps)[-1:]

    def to_record(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type_tag,
            "options": dict(self.options),
            "state": self.state.value,
        }


__all__ = ["BASE_PROPERTIES", "Context", "Dependencies", "Failure"]
