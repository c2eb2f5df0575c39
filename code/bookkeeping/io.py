import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import ALIPAY_HEADER_LINES, Settings, build_settings


def load_env_file() -> None:
    """
    Load environment variables from a .env file if present.

    The working directory wins; the directory holding the scripts is the fallback.
    """
    cwd_env = Path.cwd() / ".env"
    script_env = Path(__file__).resolve().parents[1] / ".env"

    if cwd_env.exists():
        load_dotenv(dotenv_path=cwd_env, override=False)
    elif script_env.exists():
        load_dotenv(dotenv_path=script_env, override=False)


def load_settings(
    input_path: Optional[str] = None,
    output_dir: Optional[str] = None,
    default_input: Optional[str] = None,
    input_env: str = "ALIPAY_INPUT_FILE",
) -> Settings:
    load_env_file()
    input_path = input_path or os.getenv(input_env) or default_input
    output_dir = output_dir or os.getenv("BOOKKEEPING_OUTPUT_DIR")
    if not input_path:
        raise ValueError(f"No input file given and {input_env} is not set")

    raw_header = os.getenv("ALIPAY_HEADER_LINES", "").strip()
    try:
        header_lines = int(raw_header) if raw_header else ALIPAY_HEADER_LINES
    except ValueError as exc:
        raise ValueError(f"ALIPAY_HEADER_LINES must be an integer, got {raw_header!r}") from exc

    return build_settings(input_path, output_dir, header_lines=header_lines)


def ensure_dirs(s: Settings) -> None:
    s.output_dir.mkdir(parents=True, exist_ok=True)


def read_statement_lines(path: Path, encoding: str = "utf-8-sig") -> List[str]:
    """
    Read a statement export into lines (no trailing newline characters).

    Raises:
        FileNotFoundError: If the statement file does not exist
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Statement file not found: {path}")

    # utf-8-sig drops the BOM some exporters prepend
    text = path.read_text(encoding=encoding)
    return [line.rstrip("\r") for line in text.split("\n")]
