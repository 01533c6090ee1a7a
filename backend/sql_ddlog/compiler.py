"""
Invocation of the external ddlog compiler.

The translator only produces text; this module hands that text, together with
the generated sqlop library, to the ddlog executable when it is installed.
"""
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional
import logging
from pydantic import BaseModel
from config import DDLOG_ACTION, DDLOG_BINARY, DDLOG_LIB_DIRS
from .errors import DDlogCompileError, DDlogNotFoundError
from .library import write_library

logger = logging.getLogger(__name__)


class CompileResult(BaseModel):
    """Outcome of a successful ddlog run."""
    command: List[str]
    stdout: str = ""
    stderr: str = ""


def find_ddlog(binary: Optional[str] = None) -> Optional[str]:
    """Path of the ddlog executable, or None if it is not installed."""
    return shutil.which(binary or DDLOG_BINARY)


def compile_program(
    program_text: str,
    library_dirs: Optional[List[str]] = None,
    binary: Optional[str] = None,
    action: Optional[str] = None,
) -> CompileResult:
    """
    Run ddlog on a generated program.

    Args:
        program_text: Serialized DDlog program
        library_dirs: Extra -L directories (default: DDLOG_LIB_DIRS)
        binary: ddlog executable (default: DDLOG_BINARY)
        action: ddlog --action value (default: DDLOG_ACTION)

    Returns:
        CompileResult with the command line and captured output

    Raises:
        DDlogNotFoundError: ddlog is not installed
        DDlogCompileError: ddlog exited with a non-zero status
    """
    executable = find_ddlog(binary)
    if executable is None:
        raise DDlogNotFoundError(f"ddlog executable '{binary or DDLOG_BINARY}' not found on PATH")

    if library_dirs is None:
        library_dirs = DDLOG_LIB_DIRS

    with tempfile.TemporaryDirectory(prefix="sql_ddlog_") as workdir:
        program_path = Path(workdir) / "program.dl"
        program_path.write_text(program_text, encoding="utf-8")
        write_library(workdir)

        command = [executable, "-i", str(program_path), "-L", workdir]
        for directory in library_dirs:
            command.extend(["-L", str(directory)])
        command.append(f"--action={action or DDLOG_ACTION}")

        logger.info(f"[DDlogCompiler] Running {' '.join(command)}")
        result = subprocess.run(command, capture_output=True, text=True)

    if result.returncode != 0:
        logger.error(f"[DDlogCompiler] ddlog failed with status {result.returncode}: {result.stderr}")
        raise DDlogCompileError(
            f"ddlog rejected the program (exit status {result.returncode})",
            stderr=result.stderr,
            returncode=result.returncode,
        )

    logger.info("[DDlogCompiler] Program accepted")
    return CompileResult(command=command, stdout=result.stdout, stderr=result.stderr)
