"""Handles interactive/command-line mode for the lark interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """lark interpreter shell."""
    intro = "lark interpreter :: Python backend\nType '?' or 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continutations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self._tmp_line = ""

    def default(self, line):
        """Executes arbitrary lark statements."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            line, add_to_prev = self.sess.preprocess_line(line, self._tmp_line)

            if add_to_prev:
                self._tmp_line = line
                self.prompt = self.secondary_prompt
            else:
                self._tmp_line = ""
                self.prompt = self._tmp_prompt

                self.sess.add(line)
                try:
                    self.sess.run()
                finally:
                    for result in self.sess.pop():  # lines printed before an error are still shown
                        print(result)

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the lark interpreter!\n\n"
              "lark is a small scripting language with variables, if/while blocks, functions \n"
              "and closures, and modules. Blocks end with 'end', and there are builtin \n"
              "libraries: math, random, string, array, time and input.\n\n"
              "Try it out by typing 'let x = 2'. Then, 'print(x * 21)' will print 42. A line \n"
              "that opens a block, like 'fun double(n) do', continues until its 'end'.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
