import threading
import unittest
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
import pandas as pd

import tag_schema
from tag_schema.config import ValidatorConfig
from tag_schema.errors import FormatError, InputShapeError, TagSyntaxError
from tag_schema.validator import Validator, constrained
from tests._util import captured_events, events


@dataclass
class User:
    name: str = constrained("maxLength:5,pattern:^[a-z]+$")
    age: int = constrained("minimum:0,maximum:150", default=30)


@dataclass
class Inner:
    x: int = constrained("minimum:2")


@dataclass(frozen=True)
class Key:
    x: int = constrained("minimum:2")


@dataclass
class Outer:
    inner: Inner = constrained("minimum:100")
    label: str = constrained("minLength:1", default="ok")


def single(tag, value, **kwargs):
    """Validate *value* as the only field of a record tagged with *tag*."""
    record = dataclass(type("Sample", (), {
        "__annotations__": {"value": Any},
        "value": constrained(tag, default=None),
    }))
    return Validator(**kwargs).validate(record(value))


class ScenarioTests(unittest.TestCase):
    def test_length_and_pattern_both_reported(self):
        result = Validator().validate(User(name="1234567890"))
        self.assertFalse(result.valid)
        self.assertEqual(
            result.messages(),
            [
                "String is too long (10 chars), maximum 5",
                "String does not match pattern: ^[a-z]+$",
            ],
        )
        self.assertEqual(result.kinds(), ["maxLength", "pattern"])
        self.assertEqual(result.paths(), ["name", "name"])

    def test_valid_record(self):
        result = Validator().validate(User(name="alice", age=42))
        self.assertTrue(result.valid)
        self.assertTrue(result.is_clean())

    def test_draft4_exclusive_minimum(self):
        result = single("minimum:5,exclusiveMinimum:true", 5)
        self.assertEqual(result.messages(), ["Value 5 is equal to exclusive minimum 5"])
        self.assertTrue(single("minimum:5,exclusiveMinimum:true", 6).valid)

    def test_ipv4_format(self):
        self.assertTrue(single("format:ipv4", "192.168.1.1").valid)
        for bad in ("999.999.999.999", "a.b.c.d"):
            result = single("format:ipv4", bad)
            self.assertEqual(result.kinds(), ["format"])
            self.assertTrue(result.messages()[0].startswith("Format validation failed ("), bad)


class StringTests(unittest.TestCase):
    def test_length_counts_code_points(self):
        result = single("maxLength:5", "日本語のテキストです")
        self.assertEqual(result.messages(), ["String is too long (10 chars), maximum 5"])
        result = single("minLength:3", "日本")
        self.assertEqual(result.messages(), ["String is too short (2 chars), minimum 3"])

    def test_pattern_is_a_search(self):
        self.assertTrue(single("pattern:[abc]+", "xxaxx").valid)
        self.assertEqual(
            single("pattern:[abc]+", "xyz").messages(),
            ["String does not match pattern: [abc]+"],
        )

    def test_enum(self):
        self.assertTrue(single("enum:[red,green]", "green").valid)
        self.assertEqual(single("enum:[red,green]", "blue").messages(), ["No enum match for: blue"])

    def test_unknown_format_is_a_violation(self):
        result = single("format:nope", "anything")
        self.assertEqual(result.messages(), ["Unknown format: nope"])
        self.assertEqual(result.kinds(), ["format"])

    def test_custom_format(self):
        def upper(value):
            if value != value.upper():
                raise FormatError("not upper case")

        v = Validator()
        v.register_format("upper", upper)

        @dataclass
        class Code:
            code: str = constrained("format:upper")

        self.assertTrue(v.validate(Code("ABC")).valid)
        self.assertEqual(v.validate(Code("abc")).messages(), ["Format validation failed (not upper case)"])

    def test_string_constraints_ignore_numbers(self):
        self.assertTrue(single("maxLength:1,pattern:^a$", 12345).valid)

    def test_unknown_format_on_any_kind(self):
        for value in (3, 2.5, True, {"a": 1}, Inner(x=5)):
            result = single("format:nosuch", value)
            self.assertEqual(result.messages(), ["Unknown format: nosuch"], value)

    def test_format_on_non_string_value(self):
        result = single("format:ipv4,minimum:0", 12345)
        self.assertEqual(result.kinds(), ["format"])
        self.assertEqual(result.messages(), ["Format validation failed (ipv4: invalid value kind int)"])

    def test_format_applies_to_each_sequence_element(self):
        result = single("format:ipv4", ["10.0.0.1", 7])
        self.assertEqual(result.paths(), ["value[1]"])
        self.assertEqual(result.messages(), ["Format validation failed (ipv4: invalid value kind int)"])

    def test_predicate_checker_returning_false_fails(self):
        v = Validator()
        v.register_format("even-length", lambda value: len(value) % 2 == 0)

        @dataclass
        class Code:
            code: str = constrained("format:even-length")

        self.assertTrue(v.validate(Code("ab")).valid)
        self.assertEqual(
            v.validate(Code("abc")).messages(),
            ["Format validation failed (even-length: rejected)"],
        )


class NumberTests(unittest.TestCase):
    def test_multiple_of(self):
        self.assertEqual(single("multipleOf:5", 4).messages(), ["Value 4 is not a multiple of 5"])
        self.assertTrue(single("multipleOf:5", 15).valid)
        self.assertTrue(single("multipleOf:2.5", 7.5).valid)

    def test_float_multiple_is_exact_on_shortest_text(self):
        self.assertTrue(single("multipleOf:0.1", 0.3).valid)

    def test_numpy_scalars(self):
        self.assertTrue(single("multipleOf:0.1", np.float64(0.7)).valid)
        self.assertEqual(
            single("maximum:10", np.int64(11)).messages(),
            ["Value 11 is greater than maximum 10"],
        )

    def test_booleans_are_not_numbers(self):
        self.assertTrue(single("minimum:5", True).valid)

    def test_numeric_enum(self):
        self.assertEqual(single("enum:[1,2,3]", 4).messages(), ["No enum match for: 4"])
        self.assertTrue(single("enum:[1,2,3]", 2.0).valid)


class RecordTests(unittest.TestCase):
    def test_nested_record_paths(self):
        result = Validator().validate(Outer(inner=Inner(x=1)))
        self.assertEqual(result.paths(), ["inner.x"])
        self.assertEqual(result.children[0].label, "inner")

    def test_nested_record_ignores_own_tag(self):
        self.assertTrue(Validator().validate(Outer(inner=Inner(x=5))).valid)

    def test_private_and_skipped_fields(self):
        @dataclass
        class Hidden:
            _secret: str = constrained("maxLength:1", default="too long")
            skipped: Any = constrained("-", default="whatever")
            plain: str = "no tag"

        self.assertTrue(Validator().validate(Hidden()).valid)

    def test_none_is_absent(self):
        @dataclass
        class Optionals:
            nick: Optional[str] = constrained("minLength:3", default=None)
            tags: Optional[list] = constrained("minItems:1", default=None)

        self.assertTrue(Validator().validate(Optionals()).valid)

    def test_non_record_input(self):
        v = Validator()
        for bad in ({"name": "x"}, ["x"], "x", 5, User):
            with self.assertRaises(InputShapeError):
                v.validate(bad)
        with self.assertRaises(TypeError):
            v.validate(None)

    def test_custom_tag_key(self):
        @dataclass
        class Keyed:
            a: str = constrained("maxLength:1", key="rules", default="abc")
            b: str = constrained("maxLength:1", default="abc")

        result = Validator(config=ValidatorConfig(tag_key="rules")).validate(Keyed())
        self.assertEqual(result.paths(), ["a"])

    def test_constrained_merges_metadata(self):
        @dataclass
        class Meta:
            a: int = constrained("minimum:1", default=1, metadata={"doc": "x"})

        from dataclasses import fields
        self.assertEqual(dict(fields(Meta)[0].metadata), {"doc": "x", "jsonschema": "minimum:1"})


class SequenceTests(unittest.TestCase):
    def test_items_bounds_and_element_constraints(self):
        result = single("maxLength:2,minItems:3", ["abc", "d"])
        self.assertEqual(
            result.messages(),
            ["Array is too short (2), minimum 3", "String is too long (3 chars), maximum 2"],
        )
        self.assertEqual(result.paths(), ["value", "value[0]"])
        self.assertEqual(result.children[0].label, "value")

    def test_max_items(self):
        self.assertEqual(single("maxItems:1", (1, 2)).messages(), ["Array is too long (2), maximum 1"])

    def test_unique_items_reports_pairs(self):
        result = single("uniqueItems:true", [1, 2, 1])
        self.assertEqual(result.messages(), ["Array items are not unique (indices 2 and 0)"])

    def test_unique_items_reports_every_pair(self):
        result = single("uniqueItems:true", ["a", "a", "a"])
        self.assertEqual(
            result.messages(),
            [
                "Array items are not unique (indices 1 and 0)",
                "Array items are not unique (indices 2 and 0)",
                "Array items are not unique (indices 2 and 1)",
            ],
        )

    def test_unique_items_structural(self):
        self.assertFalse(single("uniqueItems:true", [{"a": [1]}, {"a": [1.0]}]).valid)
        self.assertTrue(single("uniqueItems:true", [1, True]).valid)
        self.assertTrue(single("uniqueItems:false", [1, 1]).valid)

    def test_numpy_array_elements(self):
        result = single("minimum:2", np.array([1, 2, 3]))
        self.assertEqual(result.paths(), ["value[0]"])
        self.assertEqual(result.messages(), ["Value 1 is less than minimum 2"])

    def test_pandas_series(self):
        result = single("uniqueItems:true,maximum:1.5", pd.Series([1.0, 2.0, 1.0]))
        self.assertEqual(
            result.messages(),
            ["Array items are not unique (indices 2 and 0)", "Value 2 is greater than maximum 1.5"],
        )
        self.assertEqual(result.paths(), ["value", "value[1]"])

    def test_records_inside_sequences(self):
        result = single("", [Inner(x=5), Inner(x=0)])
        self.assertEqual(result.paths(), ["value[1].x"])


class MappingTests(unittest.TestCase):
    def test_required_lists_full_set(self):
        result = single("required:[a,b,c]", {"a": 1, "b": 2, "d": 3})
        self.assertEqual(result.messages(), ["Missing required property: [a, b, c]"])
        self.assertTrue(single("required:[a,b]", {"a": 1, "b": 2}).valid)

    def test_property_counts(self):
        self.assertEqual(
            single("minProperties:2", {"a": 1}).messages(),
            ["Too few properties defined (1), minimum 2"],
        )
        self.assertEqual(
            single("maxProperties:1", {"a": 1, "b": 2}).messages(),
            ["Too many properties defined (2), maximum 1"],
        )

    def test_pattern_properties_per_key(self):
        result = single("patternProperties:^x-", {"x-a": 1, "b": 2, "c": 3})
        self.assertEqual(
            result.messages(),
            ["Property 'b' does not match pattern: ^x-", "Property 'c' does not match pattern: ^x-"],
        )

    def test_pattern_properties_on_numeric_keys(self):
        self.assertTrue(single("patternProperties:^[0-9]+$", {1: "a", 20: "b"}).valid)

    def test_entries_are_unconstrained(self):
        self.assertTrue(single("maxLength:1", {"long key": "long value"}).valid)

    def test_entry_labels(self):
        result = single("", {"k": Inner(x=0), Key(x=1): "v"})
        self.assertEqual(result.paths(), ["value[k](value).x", "value[Key(x=1)](key).x"])

    def test_dataframe_as_mapping(self):
        df = pd.DataFrame({"a": [1, 2], "c": [3, 4]})
        result = single("minProperties:3,required:[a,b]", df)
        self.assertEqual(result.kinds(), ["minProperties", "required"])
        self.assertEqual(
            result.messages(),
            ["Too few properties defined (2), minimum 3", "Missing required property: [a, b]"],
        )


class SafetyTests(unittest.TestCase):
    def test_cycle_is_reported_not_followed(self):
        @dataclass
        class Node:
            name: str = constrained("minLength:1")
            children: list = field(default_factory=list)

        node = Node("a")
        node.children.append(node)
        result = Validator().validate(node)
        self.assertEqual(result.kinds(), ["cycle"])
        self.assertEqual(result.paths(), ["children[0]"])

    def test_self_containing_list(self):
        data = [1]
        data.append(data)
        result = single("minimum:0", data)
        self.assertEqual(result.kinds(), ["cycle"])
        self.assertEqual(result.paths(), ["value[1]"])

    def test_shared_but_acyclic_values_are_fine(self):
        shared = ["x"]
        self.assertTrue(single("maxLength:1", [shared, shared]).valid)

    def test_depth_limit(self):
        result = single("minimum:5", [[[[1]]]], config=ValidatorConfig(max_depth=3))
        self.assertEqual(result.kinds(), ["depth"])
        self.assertEqual(result.paths(), ["value[0][0][0]"])
        self.assertEqual(result.messages(), ["Nesting deeper than 3 levels"])

    def test_same_input_same_result(self):
        v = Validator()
        value = User(name="1234567890", age=-1)
        self.assertEqual(v.validate(value), v.validate(value))

    def test_concurrent_validation(self):
        v = Validator()
        value = User(name="1234567890", age=200)
        expected = v.validate(value)
        results, errors = [], []

        def worker():
            try:
                for _ in range(50):
                    results.append(v.validate(value))
            except Exception as exc:  # pragma: no cover - failure path
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(errors, [])
        self.assertTrue(all(r == expected for r in results))


class TagErrorPolicyTests(unittest.TestCase):
    def test_raise_names_the_field(self):
        @dataclass
        class Broken:
            x: int = constrained("minimum:abc", default=1)

        with self.assertRaises(TagSyntaxError) as cm:
            Validator().validate(Broken())
        self.assertEqual(cm.exception.field, "x")
        self.assertIn("field 'x'", str(cm.exception))
        self.assertEqual(cm.exception.tag, "minimum:abc")

    def test_raise_names_nested_field(self):
        @dataclass
        class BrokenInner:
            y: int = constrained("bogus", default=1)

        @dataclass
        class Holder:
            inner: BrokenInner = field(default_factory=BrokenInner)

        with self.assertRaises(TagSyntaxError) as cm:
            Validator().validate(Holder())
        self.assertEqual(cm.exception.field, "inner.y")

    def test_non_string_tag(self):
        @dataclass
        class Odd:
            x: int = field(default=1, metadata={"jsonschema": 5})

        with self.assertRaisesRegex(TagSyntaxError, "tag must be a string"):
            Validator().validate(Odd())

    def test_ignore_logs_and_skips(self):
        @dataclass
        class Broken:
            x: int = constrained("minimum:abc", default=1)
            y: int = constrained("maximum:0", default=1)

        v = Validator(config=ValidatorConfig(on_tag_error="ignore"))
        with captured_events() as stream:
            result = v.validate(Broken())
        self.assertEqual(result.paths(), ["y"])
        ignored = [e for e in events(stream) if e["event"] == "tag.ignored"]
        self.assertEqual(len(ignored), 1)
        self.assertEqual(ignored[0]["field"], "x")
        self.assertEqual(ignored[0]["level"], "warning")


class ApiTests(unittest.TestCase):
    def test_parse_tag_is_cached(self):
        v = Validator()
        self.assertIs(v.parse_tag("minimum:1"), v.parse_tag("minimum:1"))

    def test_module_level_functions(self):
        def never(value):
            raise FormatError("never valid")

        tag_schema.register_format("test-module-never", never)

        @dataclass
        class Sample:
            s: str = constrained("format:test-module-never")

        result = tag_schema.validate(Sample("x"))
        self.assertEqual(result.messages(), ["Format validation failed (never valid)"])

    def test_logs_start_and_finish(self):
        with captured_events() as stream:
            Validator().validate(User(name="1234567890"))
        logged = {e["event"]: e for e in events(stream)}
        self.assertEqual(logged["validation.start"]["record"], "User")
        self.assertEqual(logged["validation.finish"]["violations"], 2)

    def test_raise_for_violations(self):
        result = Validator().validate(User(name="1234567890"))
        with self.assertRaises(tag_schema.ConstraintViolationError):
            result.raise_for_violations()


if __name__ == "__main__":
    unittest.main()
