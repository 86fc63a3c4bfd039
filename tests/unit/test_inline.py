"""Unit tests for inline decoding of nested records."""

from dataclasses import dataclass, field

from pydantic import BaseModel, Field
import pytest

from tagreader import (
    DecodeData,
    DecodeFailedError,
    DecoderKind,
    InlineTargetNotRecordError,
    MapSource,
    Reader,
)


@dataclass
class Inner:
    value: str = field(
        default="", metadata={"decoder": "string", "name": "inner_value"}
    )
    preset: int = 0


@dataclass
class Outer:
    title: str = field(default="", metadata={"decoder": "string"})
    by_value: Inner = field(default_factory=Inner, metadata={"decoder": "inline"})
    by_ref: Inner | None = field(default=None, metadata={"decoder": "inline"})


@dataclass
class NeedsArgs:
    name: str = field(metadata={"decoder": "string"})
    retries: int = field(metadata={"decoder": "int"})


@dataclass
class HoldsNeedsArgs:
    nested: NeedsArgs | None = field(default=None, metadata={"decoder": "inline"})


@dataclass
class InlineScalar:
    count: int = field(default=0, metadata={"decoder": "inline"})


@dataclass
class OtherInner:
    other: str = ""


@dataclass
class InlineUnion:
    either: Inner | OtherInner | None = field(
        default=None, metadata={"decoder": "inline"}
    )


@dataclass
class Failing:
    broken: str = field(default="", metadata={"decoder": "never"})


@dataclass
class HoldsFailing:
    ok: str = field(default="", metadata={"decoder": "string"})
    failing: Failing = field(default_factory=Failing, metadata={"decoder": "inline"})


@dataclass
class Leaf:
    value: str = field(default="", metadata={"decoder": "string"})


@dataclass
class Trunk:
    leaf: Leaf = field(default_factory=Leaf)


class Address(BaseModel):
    city: str = Field(
        default="", json_schema_extra={"decoder": "string", "name": "CITY"}
    )


class Customer(BaseModel):
    name: str = Field(
        default="", json_schema_extra={"decoder": "string", "name": "NAME"}
    )
    address: Address | None = Field(
        default=None, json_schema_extra={"decoder": "inline"}
    )


@pytest.fixture
def inline_reader(reader):
    """The shared reader, with `inline` as the inline decoder name."""
    return Reader(reader.settings, reader.registry, inline_decoder="inline")


class TestInlineDecoding:
    """Nested records are decoded from the same source, in place."""

    @pytest.mark.unit
    def test_nested_by_value_and_nil_reference(self, inline_reader):
        record = Outer()
        original_inner = record.by_value

        inline_reader.decode(record, MapSource({"title": "t", "inner_value": "v"}))

        assert record.title == "t"
        assert record.by_value is original_inner
        assert record.by_value.value == "v"
        assert record.by_ref == Inner(value="v")

    @pytest.mark.unit
    def test_existing_nested_record_is_updated_in_place(self, inline_reader):
        """Fields the nested pass does not touch keep their preset values."""
        existing = Inner(preset=3)
        record = Outer(by_ref=existing)

        inline_reader.decode(record, MapSource({"inner_value": "v"}))

        assert record.by_ref is existing
        assert existing == Inner(value="v", preset=3)

    @pytest.mark.unit
    def test_nil_record_without_defaults_is_materialized(self, inline_reader):
        record = HoldsNeedsArgs()

        inline_reader.decode(record, MapSource({"name": "job", "retries": "4"}))

        assert record.nested == NeedsArgs(name="job", retries=4)

    @pytest.mark.unit
    def test_materialized_record_gets_zero_values(self, inline_reader):
        record = HoldsNeedsArgs()

        inline_reader.decode(record, MapSource({}))

        assert record.nested == NeedsArgs(name="", retries=0)

    @pytest.mark.unit
    def test_inline_name_is_inert_when_not_configured(self, reader):
        """Without an inline decoder setting, `inline` is an ordinary name."""
        reader.register_single("inline", lambda value, ok, ctx: Inner(value="own"))
        record = Outer()

        reader.decode(record, MapSource({"inner_value": "ignored"}))

        assert record.by_value == Inner(value="own")
        assert record.by_ref == Inner(value="own")

    @pytest.mark.unit
    def test_default_decoder_can_be_the_inline_decoder(self, reader):
        """Untagged record fields are inlined when the fallback is `inline`."""
        reader = Reader(
            reader.settings,
            reader.registry,
            default_decoder="inline",
            inline_decoder="inline",
        )
        record = Trunk()

        reader.decode(record, MapSource({"value": "leafy"}))

        assert record.leaf == Leaf(value="leafy")

    @pytest.mark.unit
    def test_pydantic_models_inline(self, inline_reader):
        customer = Customer()

        inline_reader.decode(customer, MapSource({"NAME": "Ada", "CITY": "London"}))

        assert customer.name == "Ada"
        assert customer.address == Address(city="London")


class TestInlineErrors:
    """Errors raised around inline decoding."""

    @pytest.mark.unit
    def test_scalar_field_cannot_be_inlined(self, inline_reader):
        with pytest.raises(InlineTargetNotRecordError) as exc_info:
            inline_reader.decode(InlineScalar(), MapSource({}))

        err = exc_info.value
        assert err.field == "count"
        assert err.decoder == "inline"
        assert err.key == ""
        assert err.kind is DecoderKind.UNDEFINED
        assert dict(err.tags) == {"decoder": "inline"}

    @pytest.mark.unit
    def test_union_of_records_cannot_be_inlined(self, inline_reader):
        with pytest.raises(InlineTargetNotRecordError):
            inline_reader.decode(InlineUnion(), MapSource({}))

    @pytest.mark.unit
    def test_nested_errors_propagate_unchanged(self, inline_reader):
        """The error describes the nested field, not the field that inlined it."""
        record = HoldsFailing()

        with pytest.raises(DecodeFailedError) as exc_info:
            inline_reader.decode(record, MapSource({"ok": "yes", "broken": "x"}))

        assert exc_info.value.field == "broken"
        assert exc_info.value.decoder == "never"
        assert record.ok == "yes"


@pytest.mark.unit
def test_nested_pass_shares_decode_data(inline_reader):
    """Decoders in nested records see the globals of the enclosing call."""
    seen = []

    def remember(value, ok, ctx):  # noqa: ARG001
        ctx.set_global("title", value)
        return value

    def recall(value, ok, ctx):  # noqa: ARG001
        seen.append(ctx.get_global("title"))
        return value

    inline_reader.register_single("remember", remember)
    inline_reader.register_single("recall", recall)

    @dataclass
    class Child:
        text: str = field(default="", metadata={"decoder": "recall"})

    @dataclass
    class Parent:
        title: str = field(default="", metadata={"decoder": "remember"})
        child: Child = field(default_factory=Child, metadata={"decoder": "inline"})

    data = DecodeData()
    inline_reader.decode(Parent(), MapSource({"title": "hello", "text": "x"}), data)

    assert seen == ["hello"]
    assert data.globals == {"title": "hello"}
