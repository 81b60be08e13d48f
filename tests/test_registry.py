"""
Tests for MapRegistry registration, auto-registration and lifecycle.
"""

import logging

import pytest

from objmap import (
    BaseMapper,
    IncompleteMappingError,
    MappingNotFoundError,
    MappingSignatureError,
    MapRegistry,
    NoParameterlessConstructorError,
    NullFunctionError,
    Projection,
    RegistryFrozenError,
    map_ignore_property,
    map_validate_source,
)
from objmap.config import Settings
from objmap.schemas import FunctionShape, MapperKind, MappingKey
from tests.models import Invoice, InvoiceModel, User, UserModel


def map_user(source: User, to: UserModel) -> None:
    to.name = source.name
    to.email = source.email
    to.age = source.age


def map_user_upper(source: User, to: UserModel) -> None:
    to.name = source.name.upper()
    to.email = source.email.upper()
    to.age = source.age


def map_user_with_registry(registry: BaseMapper, source: User, to: UserModel) -> None:
    to.name = source.name
    to.email = source.email
    to.age = source.age


def create_invoice_model(source: Invoice) -> InvoiceModel:
    return InvoiceModel(number=source.number, total=source.total)


class UserMaps:
    def map_user(self, source: User, to: UserModel) -> None:
        to.name = source.name
        to.email = source.email
        to.age = source.age

    @staticmethod
    def create_invoice(source: Invoice) -> InvoiceModel:
        return InvoiceModel(number=source.number, total=source.total)

    def user_projection(self) -> Projection[User, UserModel]:
        return Projection(lambda u: _model(u.name, u.email, u.age))

    def describe(self, value: int, width: int) -> str:
        return str(value).rjust(width)

    def _hidden(self, source: User, to: UserModel) -> None:
        to.name = "hidden"


class NeedsArgumentsMaps:
    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def map_user(self, source: User, to: UserModel) -> None:
        to.name = self.prefix + source.name


@map_validate_source
class SourceCheckedMaps:
    def map_user(self, source: User, to: UserModel) -> None:
        to.name = source.name


def _model(name: str, email: str, age: int) -> UserModel:
    model = UserModel()
    model.name, model.email, model.age = name, email, age
    return model


# ─── register ─────────────────────────────────────────────────────────


def test_register_simple_in_place(registry: MapRegistry) -> None:
    """Should store a two-argument in-place mapper under its key."""
    registry.register(User, UserModel, map_user)

    entry = registry.lookup(User, UserModel, MapperKind.IN_PLACE)
    assert entry is not None
    assert entry.key == MappingKey(User, UserModel)
    assert entry.shape is FunctionShape.SIMPLE_IN_PLACE
    assert entry.function is map_user


def test_register_with_registry_argument(registry: MapRegistry) -> None:
    """A leading registry parameter selects the three-argument shape."""
    registry.register(User, UserModel, map_user_with_registry)

    entry = registry.lookup(User, UserModel)
    assert entry is not None
    assert entry.shape is FunctionShape.IN_PLACE


def test_register_factory(registry: MapRegistry) -> None:
    """A one-argument function registers as a simple factory."""
    registry.register_factory(Invoice, InvoiceModel, create_invoice_model)

    entry = registry.lookup(Invoice, InvoiceModel)
    assert entry is not None
    assert entry.kind is MapperKind.FACTORY
    assert entry.shape is FunctionShape.SIMPLE_FACTORY


def test_register_none_raises(registry: MapRegistry) -> None:
    """Registering ``None`` is rejected with a NULL_FUNCTION error."""
    with pytest.raises(NullFunctionError) as exc_info:
        registry.register(User, UserModel, None)

    assert exc_info.value.error_code == "NULL_FUNCTION"


def test_register_factory_none_raises(registry: MapRegistry) -> None:
    with pytest.raises(NullFunctionError):
        registry.register_factory(User, UserModel, None)


def test_register_projection_none_raises(registry: MapRegistry) -> None:
    with pytest.raises(NullFunctionError):
        registry.register_projection(User, UserModel, None)


def test_register_wrong_arity_raises(registry: MapRegistry) -> None:
    """A one-argument function is not an in-place mapper."""
    with pytest.raises(MappingSignatureError) as exc_info:
        registry.register(User, UserModel, lambda source: None)

    assert exc_info.value.error_code == "MAPPING_SIGNATURE_ERROR"
    assert exc_info.value.details["arity"] == 1


def test_register_non_callable_raises(registry: MapRegistry) -> None:
    """Non-callables are rejected at registration."""
    with pytest.raises(MappingSignatureError):
        registry.register(User, UserModel, "not a function")


def test_lookup_absent_pair_returns_none(registry: MapRegistry) -> None:
    """Lookup never raises for an unknown pair."""
    assert registry.lookup(User, UserModel) is None


def test_lookup_prefers_factory(registry: MapRegistry) -> None:
    """Without a kind, lookup returns the factory entry first."""
    registry.register(Invoice, InvoiceModel, lambda source, to: None)
    registry.register_factory(Invoice, InvoiceModel, create_invoice_model)

    entry = registry.lookup(Invoice, InvoiceModel)
    assert entry is not None
    assert entry.kind is MapperKind.FACTORY


def test_last_registration_wins(registry: MapRegistry) -> None:
    """The second mapper for the same pair is the one dispatched."""
    registry.register(User, UserModel, map_user)
    registry.register(User, UserModel, map_user_upper)

    model = registry.from_(User("ada", "ada@example.com", 36)).to(UserModel)

    assert model.name == "ADA"
    assert model.email == "ADA@EXAMPLE.COM"


def test_overwrite_logs_warning(registry: MapRegistry, caplog: pytest.LogCaptureFixture) -> None:
    """Replacing a mapping is logged at WARNING."""
    registry.register(User, UserModel, map_user)

    with caplog.at_level(logging.WARNING, logger="objmap.mappers.registry"):
        registry.register(User, UserModel, map_user_upper)

    assert "Mapping overwritten" in caplog.text


def test_overwrite_warning_can_be_disabled(caplog: pytest.LogCaptureFixture) -> None:
    """``warn_on_overwrite=False`` silences the overwrite warning."""
    registry = MapRegistry(settings=Settings(_env_file=None, warn_on_overwrite=False))
    registry.register(User, UserModel, map_user)

    with caplog.at_level(logging.WARNING, logger="objmap.mappers.registry"):
        registry.register(User, UserModel, map_user_upper)

    assert "Mapping overwritten" not in caplog.text


def test_registration_log_keeps_overwritten_entries(registry: MapRegistry) -> None:
    """The log keeps every registration, in order."""
    registry.register(User, UserModel, map_user)
    registry.register(User, UserModel, map_user_upper)

    functions = [entry.function for entry in registry.registration_log]
    assert functions == [map_user, map_user_upper]


def test_explicit_and_marker_ignores_merge(registry: MapRegistry) -> None:
    """Ignore sets from keywords and markers are combined."""
    @map_ignore_property("age")
    def map_partial(source: User, to: UserModel) -> None:
        to.name = source.name

    registry.register(User, UserModel, map_partial, ignore=["email"])

    entry = registry.lookup(User, UserModel)
    assert entry is not None
    assert entry.ignored == frozenset({"age", "email"})


# ─── auto_register ────────────────────────────────────────────────────


def test_auto_register_classifies_members(registry: MapRegistry) -> None:
    """Members are classified by their annotations."""
    registry.auto_register(UserMaps)

    in_place = registry.lookup(User, UserModel, MapperKind.IN_PLACE)
    factory = registry.lookup(Invoice, InvoiceModel, MapperKind.FACTORY)
    projection = registry.lookup(User, UserModel, MapperKind.PROJECTION)

    assert in_place is not None and in_place.shape is FunctionShape.SIMPLE_IN_PLACE
    assert factory is not None and factory.shape is FunctionShape.SIMPLE_FACTORY
    assert projection is not None and projection.shape is FunctionShape.PROJECTION


def test_auto_register_skips_non_mapping_and_private(registry: MapRegistry) -> None:
    """Helpers and underscore-prefixed members are not registered."""
    registry.auto_register(UserMaps())

    registered = [entry.function.__name__ for entry in registry.registration_log]
    assert sorted(registered) == ["create_invoice", "map_user"]


def test_auto_register_instance_is_used(registry: MapRegistry) -> None:
    """Bound methods keep the given instance."""
    registry.auto_register(NeedsArgumentsMaps("Dr. "))

    model = registry.from_(User("who")).to(UserModel)
    assert model.name == "Dr. who"


def test_auto_register_type_without_parameterless_constructor(registry: MapRegistry) -> None:
    """A type that needs arguments cannot be instantiated for registration."""
    with pytest.raises(NoParameterlessConstructorError) as exc_info:
        registry.auto_register(NeedsArgumentsMaps)

    assert exc_info.value.cls is NeedsArgumentsMaps


def test_auto_register_class_level_validate_source(registry: MapRegistry) -> None:
    """The class-level marker reaches each registered method."""
    registry.auto_register(SourceCheckedMaps)

    entry = registry.lookup(User, UserModel)
    assert entry is not None
    assert entry.validate_source is True


def test_auto_register_dispatches(registry: MapRegistry) -> None:
    """Auto-registered mappers are dispatched like explicit ones."""
    registry.auto_register(UserMaps)

    model = registry.from_(User("grace", "grace@example.com", 85)).to(UserModel)
    invoice = registry.from_(Invoice("INV-1", 12.5)).to(InvoiceModel)

    assert (model.name, model.email, model.age) == ("grace", "grace@example.com", 85)
    assert invoice == InvoiceModel("INV-1", 12.5)


# ─── freeze ───────────────────────────────────────────────────────────


def test_freeze_blocks_configuration(registry: MapRegistry) -> None:
    """A frozen registry rejects every configuration call."""
    registry.register(User, UserModel, map_user).freeze()

    assert registry.is_frozen
    with pytest.raises(RegistryFrozenError):
        registry.register(User, UserModel, map_user_upper)
    with pytest.raises(RegistryFrozenError):
        registry.auto_register(UserMaps)
    with pytest.raises(RegistryFrozenError):
        registry.install_factory(lambda cls: cls())


def test_frozen_registry_still_dispatches(registry: MapRegistry) -> None:
    """Freezing leaves dispatch working."""
    registry.register(User, UserModel, map_user).freeze()

    assert registry.from_(User("ada")).to(UserModel).name == "ada"


def test_freeze_validates_when_configured() -> None:
    """``validate_on_freeze`` validates first and stays unfrozen on failure."""
    registry = MapRegistry(settings=Settings(_env_file=None, validate_on_freeze=True))
    registry.register(User, UserModel, lambda source, to: None)

    with pytest.raises(IncompleteMappingError):
        registry.freeze()
    assert not registry.is_frozen


def test_get_method_unregistered_raises(registry: MapRegistry) -> None:
    """``get_method`` raises for an unknown pair."""
    with pytest.raises(MappingNotFoundError):
        registry.get_method(User, UserModel)


def test_get_factory_method_uses_in_place_mapper(registry: MapRegistry) -> None:
    """An in-place mapper is wrapped into a creating function."""
    registry.register(User, UserModel, map_user)

    create = registry.get_factory_method(User, UserModel)
    model = create(User("ada", "a@b.c", 1))

    assert isinstance(model, UserModel)
    assert model.email == "a@b.c"
