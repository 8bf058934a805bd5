import unittest
from collections import OrderedDict

from kdb_datasource_client.core.models import VariableValue
from kdb_datasource_client.core.variable_query.response_flattener import flatten, to_text
from kdb_datasource_client.exceptions import ResponseShapeError


def _frame(*columns):
    return {"data": {"values": list(columns)}}


class TestFlatten(unittest.TestCase):

    def test_preserves_result_frame_and_row_order(self):
        response = {"results": OrderedDict([
            ("k1", {"frames": [_frame(["a", "b"])]}),
            ("k2", {"frames": [_frame(["c"])]}),
        ])}
        self.assertEqual(flatten(response), [VariableValue("a"), VariableValue("b"), VariableValue("c")])

    def test_does_not_sort_keys(self):
        response = {"results": {"B": {"frames": [_frame(["b"])]}, "A": {"frames": [_frame(["a"])]}}}
        self.assertEqual([v.text for v in flatten(response)], ["b", "a"])

    def test_multiple_frames_only_first_column(self):
        response = {"results": {"A": {"frames": [
            _frame(["x", "y"], [1, 2]),
            _frame(["z"], ["ignored"]),
        ]}}}
        self.assertEqual([v.text for v in flatten(response)], ["x", "y", "z"])

    def test_empty_results(self):
        self.assertEqual(flatten({"results": {}}), [])

    def test_empty_contributions_are_not_errors(self):
        response = {"results": {
            "A": {"frames": []},
            "B": {"frames": [_frame([])]},
            "C": {"frames": [{"data": {"values": []}}]},
            "D": {"frames": [{"schema": {}}]},
            "E": {"error": "query failed", "status": 500},
            "F": {"frames": [_frame(["kept"])]},
        }}
        self.assertEqual(flatten(response), [VariableValue("kept")])

    def test_values_are_stringified_not_filtered(self):
        response = {"results": {"A": {"frames": [_frame(["s", 1, 2.5, 3.0, None, True, ""])]}}}
        self.assertEqual([v.text for v in flatten(response)], ["s", "1", "2.5", "3", "null", "true", ""])

    def test_missing_results_raises(self):
        with self.assertRaises(ResponseShapeError):
            flatten({"message": "nope"})
        with self.assertRaises(ResponseShapeError):
            flatten(None)

    def test_wrong_shapes_raise(self):
        bad_responses = [
            {"results": []},
            {"results": {"A": "oops"}},
            {"results": {"A": {"frames": {"data": {}}}}},
            {"results": {"A": {"frames": ["oops"]}}},
            {"results": {"A": {"frames": [{"data": []}]}}},
            {"results": {"A": {"frames": [{"data": {"values": "abc"}}]}}},
            {"results": {"A": {"frames": [{"data": {"values": ["abc"]}}]}}},
        ]
        for response in bad_responses:
            with self.assertRaises(ResponseShapeError, msg=str(response)):
                flatten(response)


class TestToText(unittest.TestCase):

    def test_scalars(self):
        self.assertEqual(to_text("sym"), "sym")
        self.assertEqual(to_text(None), "null")
        self.assertEqual(to_text(False), "false")
        self.assertEqual(to_text(10), "10")
        self.assertEqual(to_text(10.0), "10")
        self.assertEqual(to_text(0.25), "0.25")

    def test_non_finite_and_exponent_floats(self):
        self.assertEqual(to_text(float("nan")), "NaN")
        self.assertEqual(to_text(float("inf")), "Infinity")
        self.assertEqual(to_text(float("-inf")), "-Infinity")
        self.assertEqual(to_text(1e21), "1e+21")
        self.assertEqual(to_text(1e20), "100000000000000000000")
        self.assertEqual(to_text(1.5e-7), "1.5e-7")
        self.assertEqual(to_text(0.000001), "0.000001")
        self.assertEqual(to_text(-0.0), "0")


if __name__ == '__main__':
    unittest.main()
