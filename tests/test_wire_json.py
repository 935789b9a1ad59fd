import os
import sys
import unittest
from dataclasses import dataclass


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from rxkit.fingerprint import state_fingerprint
from rxkit.wire_json import WireJsonTypeError, canonical_dumps, to_wire


@dataclass(frozen=True)
class _Pair:
    drug: str = ""
    moa: str = ""


class TestWireJson(unittest.TestCase):
    def test_key_ordering_is_deterministic(self) -> None:
        self.assertEqual(canonical_dumps({"b": 1, "a": 2}), canonical_dumps({"a": 2, "b": 1}))

    def test_list_order_preserved(self) -> None:
        self.assertEqual(canonical_dumps({"uses": ["b", "a"]}), '{"uses":["b","a"]}')

    def test_dataclass_entries(self) -> None:
        self.assertEqual(to_wire([_Pair("Aspirin", "COX")]), [{"drug": "Aspirin", "moa": "COX"}])
        self.assertEqual(canonical_dumps((_Pair(),)), '[{"drug":"","moa":""}]')

    def test_non_ascii_preserved(self) -> None:
        out = canonical_dumps({"name": "café"})
        self.assertIn("café", out)
        self.assertNotIn("\\u", out)

    def test_unsupported_type_raises(self) -> None:
        with self.assertRaises(WireJsonTypeError):
            canonical_dumps({"bad": {1, 2, 3}})
        with self.assertRaises(WireJsonTypeError):
            canonical_dumps({1: "x"})

    def test_reject_non_finite(self) -> None:
        for value in (float("nan"), float("inf"), float("-inf")):
            with self.assertRaises(ValueError):
                canonical_dumps({"bad": value})

    def test_fingerprint(self) -> None:
        a = state_fingerprint({"b": 1, "a": [1, 2]})
        self.assertTrue(a.startswith("sha256:"))
        self.assertEqual(a, state_fingerprint({"a": [1, 2], "b": 1}))
        self.assertNotEqual(a, state_fingerprint({"a": [2, 1], "b": 1}))


if __name__ == "__main__":
    unittest.main()
