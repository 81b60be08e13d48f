"""
Tests for sequence and async-sequence dispatch.
"""

from collections.abc import AsyncIterator

import pytest

from objmap import MappingNotFoundError, MapRegistry
from tests.models import Invoice, InvoiceModel, User, UserModel


def map_user(source: User, to: UserModel) -> None:
    to.name = source.name
    to.email = source.email
    to.age = source.age


def create_invoice_model(source: Invoice) -> InvoiceModel:
    return InvoiceModel(source.number, source.total)


@pytest.fixture
def mapped_registry(registry: MapRegistry) -> MapRegistry:
    registry.register(User, UserModel, map_user)
    registry.register_factory(Invoice, InvoiceModel, create_invoice_model)
    return registry


@pytest.fixture
def users() -> list[User]:
    return [User("ada", age=36), User("grace", age=85), User("linus", age=54)]


async def _stream(items: list) -> AsyncIterator:
    for item in items:
        yield item


# ─── from_many ────────────────────────────────────────────────────────


def test_to_list_preserves_order(mapped_registry: MapRegistry, users: list[User]) -> None:
    """Results come back in source order."""
    models = mapped_registry.from_many(users).to_list(UserModel)

    assert [m.name for m in models] == ["ada", "grace", "linus"]
    assert all(isinstance(m, UserModel) for m in models)


def test_to_is_lazy(mapped_registry: MapRegistry) -> None:
    """Nothing is mapped (or looked up) until the result is iterated."""
    mapped = mapped_registry.from_many([User("ada"), "not a user"]).to(UserModel)

    assert next(mapped).name == "ada"
    # the mapper is resolved once, from the first element
    with pytest.raises(AttributeError):
        next(mapped)


def test_to_unregistered_raises_on_iteration(registry: MapRegistry, users: list[User]) -> None:
    """A missing mapping surfaces when the lazy result is consumed."""
    mapped = registry.from_many(users).to(UserModel)

    with pytest.raises(MappingNotFoundError):
        list(mapped)


def test_to_tuple(mapped_registry: MapRegistry) -> None:
    invoices = [Invoice("INV-1", 10.0), Invoice("INV-2", 20.0)]

    assert mapped_registry.from_many(invoices).to_tuple(InvoiceModel) == (
        InvoiceModel("INV-1", 10.0),
        InvoiceModel("INV-2", 20.0),
    )


def test_empty_sequence(mapped_registry: MapRegistry) -> None:
    """An empty source maps to an empty list."""
    assert mapped_registry.from_many([]).to_list(UserModel) == []


def test_to_list_existing_shrinks_in_place(mapped_registry: MapRegistry, users: list[User]) -> None:
    """Three existing destinations, two sources: same list, first two reused."""
    existing = [UserModel(), UserModel(), UserModel()]
    first, second = existing[0], existing[1]

    result = mapped_registry.from_many(users[:2]).to_list(UserModel, existing)

    assert result is existing
    assert len(existing) == 2
    assert existing[0] is first and existing[1] is second
    assert [m.name for m in existing] == ["ada", "grace"]


def test_to_list_existing_grows(mapped_registry: MapRegistry, users: list[User]) -> None:
    """Extra sources append newly created destinations."""
    existing = [UserModel()]
    kept = existing[0]

    mapped_registry.from_many(users).to_list(UserModel, existing)

    assert len(existing) == 3
    assert existing[0] is kept
    assert [m.age for m in existing] == [36, 85, 54]


def test_to_list_existing_from_generator(mapped_registry: MapRegistry, users: list[User]) -> None:
    existing: list[UserModel] = []

    mapped_registry.from_many(u for u in users).to_list(UserModel, existing)

    assert [m.name for m in existing] == ["ada", "grace", "linus"]


def test_to_list_existing_empty_source_clears(mapped_registry: MapRegistry) -> None:
    """No sources and no explicit type truncates the existing list."""
    existing = [UserModel(), UserModel()]

    mapped_registry.from_many([]).to_list(UserModel, existing)

    assert existing == []


def test_to_list_existing_needs_in_place_mapper(mapped_registry: MapRegistry) -> None:
    """Reusing destinations needs an in-place mapper; the list is left untouched."""
    existing = [InvoiceModel()]

    with pytest.raises(MappingNotFoundError):
        mapped_registry.from_many([Invoice("INV-1")]).to_list(InvoiceModel, existing)
    assert len(existing) == 1


def test_from_nullable_many(mapped_registry: MapRegistry) -> None:
    """``None`` elements stay ``None`` in the result."""
    models = mapped_registry.from_nullable_many([None, User("ada"), None]).to_list(UserModel)

    assert models[0] is None and models[2] is None
    assert models[1].name == "ada"


def test_from_many_explicit_source_type(mapped_registry: MapRegistry) -> None:
    """``source_type`` overrides the runtime type of the first element."""
    class Guest(User):
        pass

    models = mapped_registry.from_many([Guest("g1"), Guest("g2")], source_type=User).to_tuple(UserModel)

    assert [m.name for m in models] == ["g1", "g2"]


# ─── from_async ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_async_to_preserves_order(mapped_registry: MapRegistry, users: list[User]) -> None:
    """The async stream yields mapped items in arrival order."""
    names = [m.name async for m in mapped_registry.from_async(_stream(users)).to(UserModel)]

    assert names == ["ada", "grace", "linus"]


@pytest.mark.asyncio
async def test_async_to_list(mapped_registry: MapRegistry) -> None:
    invoices = [Invoice("INV-1", 1.0), Invoice("INV-2", 2.0)]

    result = await mapped_registry.from_async(_stream(invoices)).to_list(InvoiceModel)

    assert result == [InvoiceModel("INV-1", 1.0), InvoiceModel("INV-2", 2.0)]


@pytest.mark.asyncio
async def test_async_nullable(mapped_registry: MapRegistry) -> None:
    result = await mapped_registry.from_nullable_async(
        _stream([User("ada"), None])).to_list(UserModel)

    assert result[0].name == "ada"
    assert result[1] is None


@pytest.mark.asyncio
async def test_async_stops_with_source(mapped_registry: MapRegistry, users: list[User]) -> None:
    """Closing the mapped stream early maps no further elements."""
    seen: list[str] = []

    async def tracking() -> AsyncIterator[User]:
        for user in users:
            seen.append(user.name)
            yield user

    mapped = mapped_registry.from_async(tracking()).to(UserModel)
    first = await mapped.__anext__()
    await mapped.aclose()

    assert first.name == "ada"
    assert seen == ["ada"]


@pytest.mark.asyncio
async def test_async_unregistered_raises(registry: MapRegistry, users: list[User]) -> None:
    """A missing mapping raises from the async stream."""
    with pytest.raises(MappingNotFoundError):
        await registry.from_async(_stream(users)).to_list(UserModel)
