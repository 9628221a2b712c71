import unittest

from bfcr import (
    BrainfuckInterpreter,
    PointerOutOfBounds,
    StepLimitExceeded,
    UnmatchedCloseBracket,
    UnmatchedOpenBracket,
)

HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


class BrainfuckInterpreterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.interpreter = BrainfuckInterpreter()

    def test_hello_world(self) -> None:
        output = self.interpreter.run(HELLO_WORLD, max_steps=100_000)
        self.assertEqual(output, b"Hello World!\n")

    def test_increment_wraps_to_zero(self) -> None:
        self.assertEqual(self.interpreter.run("-+."), b"\x00")

    def test_decrement_wraps_to_255(self) -> None:
        self.assertEqual(self.interpreter.run("-."), b"\xff")

    def test_input_is_consumed_line_by_line(self) -> None:
        output = self.interpreter.run(",.,.,.,.,.", input_data=b"ab\ncd\n")
        self.assertEqual(output, b"ab\ncd")
        self.assertFalse(self.interpreter.input_exhausted)

    def test_exhausted_input_terminates_program(self) -> None:
        output = self.interpreter.run("+++,.,.+++.", input_data=b"a")
        self.assertEqual(output, b"a")
        self.assertTrue(self.interpreter.input_exhausted)

    def test_exhausted_input_leaves_cell_unchanged(self) -> None:
        states = list(self.interpreter.step("+++,"))
        self.assertEqual(states[-1].tape, [3])

    def test_tape_grows_on_demand(self) -> None:
        self.interpreter.run(">>>>>+")
        self.assertEqual(len(self.interpreter.tape), 6)
        self.assertEqual(self.interpreter.tape[5], 1)

    def test_left_bound_aborts(self) -> None:
        with self.assertRaises(PointerOutOfBounds) as ctx:
            self.interpreter.run("+.<")
        self.assertEqual(str(ctx.exception), "Left bound reached.")
        self.assertEqual(bytes(self.interpreter.output_buffer), b"\x01")

    def test_right_bound_aborts(self) -> None:
        interpreter = BrainfuckInterpreter(max_index=3)
        interpreter.run(">>>")
        with self.assertRaises(PointerOutOfBounds) as ctx:
            interpreter.run(">>>>")
        self.assertEqual(str(ctx.exception), "Right bound reached.")

    def test_step_limit_exceeded(self) -> None:
        with self.assertRaises(StepLimitExceeded):
            self.interpreter.run("+[]", max_steps=10)

    def test_bracket_errors(self) -> None:
        with self.assertRaises(UnmatchedCloseBracket):
            self.interpreter.run("]")
        with self.assertRaises(UnmatchedOpenBracket):
            self.interpreter.run("[")


class BrainfuckInterpreterStepTests(unittest.TestCase):
    def test_steps_execute_runs(self) -> None:
        interpreter = BrainfuckInterpreter()
        states = list(interpreter.step("+++.", tape_window=2))
        # The last state marks completion and carries no command.
        self.assertEqual([state.command for state in states], ["+", ".", None])
        self.assertEqual([state.count for state in states], [3, 1, 0])
        self.assertEqual(states[-1].output, b"\x03")
        self.assertEqual(states[-1].pc, states[-1].program_length)

    def test_tape_window(self) -> None:
        interpreter = BrainfuckInterpreter()
        states = list(interpreter.step(">>>>+", tape_window=1))
        final = states[-1]
        self.assertEqual(final.pointer, 4)
        self.assertEqual(final.tape_start, 3)
        self.assertEqual(final.tape, [0, 1])


if __name__ == "__main__":
    unittest.main()
