import io
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest import mock

from larkscript import main
from larkscript.lang.error import ErrorHandler, GenericException, LarkNameError, LarkSyntaxError
from larkscript.lang.session import Session
from larkscript.lang.shell import Shell


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.stream = io.StringIO()
        self.write("util.lark", "fun twice(n) do return n * 2 end")

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, name, source):
        path = os.path.join(self.tmp.name, name)
        with open(path, "w", encoding="utf-8") as file:
            file.write(source)
        return path

    def shell_session(self, **kwargs):
        return Session(ErrorHandler(stream=self.stream), Session.SH_FILE, self.tmp.name, cmd_line=True, **kwargs)

    def test_file_mode(self):
        path = self.write("main.lark", "import util\nprint(util.twice(21))\nprint(\"done\")")
        sess = Session(ErrorHandler(stream=self.stream), path)
        self.assertEqual(["42", "done"], sess.run())
        self.assertEqual(["42", "done"], sess.pop())
        self.assertEqual([], sess.pop())

    def test_file_errors(self):
        self.assertRaises(GenericException, Session, ErrorHandler(), os.path.join(self.tmp.name, "missing.lark"))
        self.assertRaises(GenericException, Session, ErrorHandler(), Session.SH_FILE, cmd_line=False)

        path = self.write("broken.lark", "let x =")
        with self.assertRaises(LarkSyntaxError) as ctx:
            Session(ErrorHandler(), path)
        self.assertEqual(path, ctx.exception.path)

    def test_output_before_error(self):
        path = self.write("main.lark", 'print("before")\nprint(missing)')
        sess = Session(ErrorHandler(stream=self.stream), path)
        with self.assertRaises(LarkNameError) as ctx:
            sess.run()
        self.assertEqual(["before"], sess.pop())
        self.assertEqual(("print(missing)", 2, 6), ctx.exception.position)

    def test_shell_mode(self):
        sess = self.shell_session()
        self.assertFalse(sess.error_handler.fatal)

        sess.add("let x = 2")
        self.assertEqual([], sess.run())
        sess.add("import util print(util.twice(x * 21))")
        self.assertEqual(["84"], sess.run())

    def test_shell_errors(self):
        sess = self.shell_session()
        sess.add("let x = 1")
        sess.run()

        sess.add("print(y)")
        with self.assertRaises(LarkNameError) as ctx:
            sess.run()
        self.assertEqual(Session.SH_FILE, ctx.exception.path)
        self.assertEqual(("print(y)", 2, 6), ctx.exception.position)
        self.assertEqual([], sess.to_exec)

        sess.add("print(x)")
        self.assertEqual(["1"], sess.run())

    def test_shell_return(self):
        sess = self.shell_session()
        sess.add('print("a") return 1 print("b")')
        self.assertEqual(["a"], sess.run())
        self.assertIn("warning", self.stream.getvalue())

        sess.pop()
        sess.add('print("c")')
        self.assertEqual(["c"], sess.run())

    def test_seed(self):
        source = "import random print(random.randint(1, 1000000)) print(random.random())"
        results = []
        for __ in range(2):
            sess = self.shell_session(seed=5)
            sess.add(source)
            results.append(sess.run())
        self.assertEqual(results[0], results[1])

    def test_reader(self):
        sess = self.shell_session(reader=lambda prompt: "12 apples")
        sess.add("import input print(input.int() + 1)")
        self.assertEqual(["13"], sess.run())

    def test_preprocess_line(self):
        should_pass = [
            (("fun f() do", ""), ("fun f() do", True)),
            (("end", "fun f() do"), ("fun f() do\nend", False)),
            (("print(1)", "if x then"), ("if x then\nprint(1)", True)),
            (("if x then print(1) end", ""), ("if x then print(1) end", False)),
            (("# while", ""), ("# while", False)),
            (('print("if")', ""), ('print("if")', False)),
            (("fun f() do if x then", ""), ("fun f() do if x then", True)),
        ]
        for args, result in should_pass:
            self.assertEqual(result, Session.preprocess_line(*args), args)


class ShellTestCase(unittest.TestCase):

    def setUp(self):
        self.stream = io.StringIO()
        self.shell = Shell(Session(ErrorHandler(stream=self.stream), Session.SH_FILE, cmd_line=True))

    def execute(self, *lines):
        out = io.StringIO()
        with redirect_stdout(out):
            for line in lines:
                self.shell.onecmd(line)
        return out.getvalue()

    def test_statements(self):
        self.assertEqual("", self.execute("let x = 4"))
        self.assertEqual("8\n", self.execute("print(x * 2)"))

    def test_continuation(self):
        self.execute("fun f() do")
        self.assertEqual(self.shell.secondary_prompt, self.shell.prompt)
        self.execute("return 3")
        self.execute("end")
        self.assertEqual("> ", self.shell.prompt)
        self.assertEqual("3\n", self.execute("print(f())"))

    def test_errors(self):
        self.assertEqual("", self.execute("print(nope)"))
        self.assertIn("error", self.stream.getvalue())
        self.assertIn("NameError", self.stream.getvalue())
        self.assertEqual("1\n", self.execute("print(1)"))  # the shell survives

    def test_output_before_error(self):
        self.assertEqual("1\n", self.execute("print(1) print(missing)"))
        self.assertIn("NameError", self.stream.getvalue())
        self.assertEqual("2\n", self.execute("print(2)"))

    def test_commands(self):
        self.assertTrue(self.shell.onecmd("exit"))
        self.assertIn("lark", self.execute("help"))
        self.assertFalse(self.shell.emptyline())


class ErrorHandlerTestCase(unittest.TestCase):

    def setUp(self):
        self.stream = io.StringIO()

    def test_throw(self):
        handler = ErrorHandler(fatal=False, stream=self.stream)
        error = LarkNameError("'{}' is not defined", "foo", offset=16).locate("main.lark", "let y = 1\nprint(foo)")
        handler.throw(error)

        output = self.stream.getvalue()
        self.assertIn("File 'main.lark', line 2:", output)
        self.assertIn("print(foo)", output)
        self.assertIn("NameError", output)
        self.assertIn("^~~", output)

    def test_fatal(self):
        handler = ErrorHandler(stream=self.stream)
        with self.assertRaises(SystemExit) as ctx:
            handler.throw(GenericException("failure"))
        self.assertEqual(1, ctx.exception.code)

    def test_unlocated(self):
        handler = ErrorHandler(fatal=False, stream=self.stream)
        handler.register_file("script.lark", "print(x)")
        handler.throw(LarkNameError("'{}' is not defined", "x", offset=6))
        self.assertIn("File 'script.lark', line 1:", self.stream.getvalue())

    def test_context_manager(self):
        with ErrorHandler(fatal=False, stream=self.stream):
            raise LarkNameError("'{}' is not defined", "x")
        self.assertIn("NameError", self.stream.getvalue())

        with ErrorHandler(fatal=False, stream=self.stream):
            raise KeyboardInterrupt
        self.assertIn("keyboard interrupt", self.stream.getvalue())

        with ErrorHandler(fatal=False, stream=self.stream):
            raise RecursionError
        self.assertIn("maximum recursion depth exceeded", self.stream.getvalue())

    def test_internal(self):
        with self.assertRaises(ValueError):
            with ErrorHandler(fatal=False, stream=self.stream):
                raise ValueError("boom")
        self.assertIn("[internal]", self.stream.getvalue())
        self.assertIn("unknown error", self.stream.getvalue())

        with self.assertRaises(SystemExit):
            with ErrorHandler(fatal=False, stream=self.stream):
                sys.exit(2)

    def test_warn(self):
        handler = ErrorHandler(fatal=False, stream=self.stream)
        handler.register_file("main.lark", "return 1")
        handler.warn("'return' outside a function ended the program", diagnosis=False)
        self.assertIn("warning", self.stream.getvalue())
        self.assertIn("main.lark", self.stream.getvalue())


class MainTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def run_main(self, source, *args):
        path = os.path.join(self.tmp.name, "main.lark")
        with open(path, "w", encoding="utf-8") as file:
            file.write(source)

        out = io.StringIO()
        with mock.patch.object(sys, "argv", ["lark", path, *args]), redirect_stdout(out):
            main.main()
        return out.getvalue()

    def test_file(self):
        self.assertEqual("42\n", self.run_main("let x = 21\nprint(x * 2)"))

    def test_seed(self):
        source = "import random print(random.randint(1, 1000000))"
        self.assertEqual(self.run_main(source, "--seed", "9"), self.run_main(source, "--seed", "9"))

    def test_error_exit(self):
        out = io.StringIO()
        with self.assertRaises(SystemExit) as ctx:
            with redirect_stdout(out):
                self.run_main('print("before")\nprint(missing)')
        self.assertEqual(1, ctx.exception.code)

    def test_search_path(self):
        library = os.path.join(self.tmp.name, "lib")
        os.mkdir(library)
        with open(os.path.join(library, "greet.lark"), "w", encoding="utf-8") as file:
            file.write('let text = "hi"')
        self.assertEqual("hi\n", self.run_main("import greet print(greet.text)", "--path", library))


if __name__ == '__main__':
    unittest.main()
