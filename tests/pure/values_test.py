import math
import unittest

from larkscript.lang.error import LarkNameError, LarkTypeError
from larkscript.pure.values import (
    Environment, Function, Module, NativeFunction, add, compare, divide, equals, is_truthy, represent, type_name
)


class RepresentTestCase(unittest.TestCase):

    def test_numbers(self):
        should_pass = {
            3.0: "3",
            5: "5",
            -0.0: "0",
            2.5: "2.5",
            0.1: "0.1",
            123456789.0: "123456789",
            1e21: "1e+21",
            1.5e-7: "1.5e-7",
            1e-7: "1e-7",
            1e-6: "0.000001",
            1e-5: "0.00001",
            1.5e-5: "0.000015",
            -2.5e-6: "-0.0000025",
            0.0001: "0.0001",
            1e30: "1e+30",
            math.nan: "NaN",
            math.inf: "Infinity",
            -math.inf: "-Infinity",
        }
        for case, result in should_pass.items():
            self.assertEqual(result, represent(case), case)

    def test_other_values(self):
        self.assertEqual("undefined", represent(None))
        self.assertEqual("true", represent(True))
        self.assertEqual("false", represent(False))
        self.assertEqual("text", represent("text"))
        self.assertEqual("[1, a, [2.5], undefined]", represent([1.0, "a", [2.5], None]))
        self.assertEqual("[]", represent([]))
        self.assertEqual("<module math>", represent(Module("math", {})))
        self.assertEqual("<native fun math.sqrt>", represent(NativeFunction("math.sqrt", math.sqrt)))

    def test_type_name(self):
        should_pass = [
            (None, "undefined"),
            (True, "boolean"),
            (1.0, "number"),
            ("s", "string"),
            ([], "array"),
            (Module("m", {}), "module"),
            (NativeFunction("f", len), "function"),
        ]
        for case, result in should_pass:
            self.assertEqual(result, type_name(case))


class OperatorTestCase(unittest.TestCase):

    def test_truthiness(self):
        falsy = [None, False, 0, 0.0, math.nan, ""]
        truthy = [True, 1, -1.0, "0", " ", [], Module("m", {})]
        for case in falsy:
            self.assertFalse(is_truthy(case), case)
        for case in truthy:
            self.assertTrue(is_truthy(case), case)

    def test_add(self):
        self.assertEqual(3.5, add(1.0, 2.5))
        self.assertEqual("aundefined", add("a", None))
        self.assertEqual("[1]x", add([1.0], "x"))
        self.assertEqual("truex", add(True, "x"))

        should_fail = [(None, 1.0), (True, 1.0), ([1.0], [2.0])]
        for left, right in should_fail:
            self.assertRaises(LarkTypeError, add, left, right)

    def test_divide(self):
        self.assertEqual(0.5, divide(1.0, 2.0))
        self.assertEqual(math.inf, divide(1.0, 0.0))
        self.assertEqual(-math.inf, divide(-1.0, 0.0))
        self.assertEqual(-math.inf, divide(1.0, -0.0))
        self.assertTrue(math.isnan(divide(0.0, 0.0)))
        self.assertTrue(math.isnan(divide(math.nan, 0.0)))
        self.assertRaises(LarkTypeError, divide, "a", 1.0)

    def test_equals(self):
        fn = Function("f", (), (), Environment())
        should_pass = [
            (1, 1.0, True),
            ("a", "a", True),
            (None, None, True),
            ([1.0, [2.0]], [1, [2]], True),
            (fn, fn, True),
            ([1.0], [1.0, 2.0], False),
            ("1", 1.0, False),
            (True, 1.0, False),
            (None, 0.0, False),
            (math.nan, math.nan, False),
            (fn, Function("f", (), (), Environment()), False),
            (Module("m", {}), Module("m", {}), False),
        ]
        for left, right, result in should_pass:
            self.assertEqual(result, equals(left, right), (left, right))

    def test_compare(self):
        self.assertTrue(compare("<", 1.0, 2.0))
        self.assertTrue(compare(">=", 2.0, 2.0))
        self.assertTrue(compare(">=", "b", "a"))
        self.assertTrue(compare("<", "Z", "a"))
        self.assertTrue(compare("==", None, None))
        self.assertTrue(compare("!=", 1.0, "1"))
        self.assertFalse(compare("<", math.nan, 1.0))

        should_fail = [("<", 1.0, "a"), (">", None, None), ("<=", [1.0], [2.0]), (">", True, False)]
        for op, left, right in should_fail:
            self.assertRaises(LarkTypeError, compare, op, left, right)

    def test_operand_error(self):
        with self.assertRaises(LarkTypeError) as ctx:
            compare("<", 1.0, "a", 7)
        self.assertEqual(7, ctx.exception.offset)
        self.assertEqual("<", ctx.exception.expr)
        self.assertIn("number and string", str(ctx.exception))


class BindingTestCase(unittest.TestCase):

    def test_environment(self):
        outer = Environment()
        outer.assign("x", 1.0)
        inner = Environment(outer)
        self.assertEqual(1.0, inner.lookup("x"))

        inner.assign("x", 2.0)
        self.assertEqual(2.0, inner.lookup("x"))
        self.assertEqual(1.0, outer.lookup("x"))

        with self.assertRaises(LarkNameError) as ctx:
            inner.lookup("y", 3)
        self.assertEqual("y", ctx.exception.expr)
        self.assertEqual(3, ctx.exception.offset)

    def test_module_member(self):
        module = Module("util", {"x": 1.0})
        self.assertEqual(1.0, module.member("x"))
        with self.assertRaises(LarkNameError) as ctx:
            module.member("y")
        self.assertEqual("util", ctx.exception.expr)

    def test_native_function(self):
        self.assertEqual(3, NativeFunction("len", len).invoke(["abc"]))

        with self.assertRaises(LarkTypeError) as ctx:
            NativeFunction("first", lambda arr: arr[0]).invoke([[]])
        self.assertIsInstance(ctx.exception.__cause__, IndexError)

        self.assertRaises(LarkTypeError, NativeFunction("one", lambda a: a).invoke, [])

        def failing():
            raise LarkNameError("'{}' is not defined", "z")

        self.assertRaises(LarkNameError, NativeFunction("failing", failing).invoke, [])


if __name__ == '__main__':
    unittest.main()
