"""
Interactive read-eval-print loop for Brisk.

Each line is evaluated against one persistent interpreter, so
declarations stay visible to later lines. Results are echoed in their
quoted form; errors are reported and the loop carries on.
"""

import logging
import os
import sys
from typing import Optional, TextIO

from .errors import BriskError
from .runtime import Interpreter

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = "> "
EXIT_COMMANDS = ("exit", "quit")


def get_prompt() -> str:
    """Prompt from BRISK_PROMPT, or the default."""
    return os.environ.get("BRISK_PROMPT", DEFAULT_PROMPT)


def repl(interp: Optional[Interpreter] = None,
         stdin: Optional[TextIO] = None,
         stdout: Optional[TextIO] = None,
         stderr: Optional[TextIO] = None,
         prompt: Optional[str] = None) -> int:
    """
    Run the loop until `exit` or end of input.

    Args:
        interp: Interpreter to evaluate with; a fresh one writing to
            `stdout` if omitted
        stdin: Input stream (default sys.stdin)
        stdout: Stream for prompts, echoed results and program output
        stderr: Stream for diagnostics
        prompt: Prompt string (default from BRISK_PROMPT)

    Returns:
        Exit status, always 0
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    prompt = get_prompt() if prompt is None else prompt
    interp = interp or Interpreter(stdout=stdout)

    count = 0
    while True:
        stdout.write(prompt)
        stdout.flush()
        line = stdin.readline()
        if not line:
            stdout.write("\n")
            break

        source = line.strip()
        if not source:
            continue
        if source in EXIT_COMMANDS:
            break

        count += 1
        try:
            result = interp.run(source, filename=f"<repl:{count}>")
        except BriskError as exc:
            stderr.write(f"{exc}\n")
            continue
        stdout.write(result.to_repr() + "\n")

    logger.debug("repl finished after %d inputs", count)
    return 0
