import json
import pathlib

from core.config import settings

_DEFAULT_ABI_DIR = pathlib.Path(__file__).parent / "abi"


def read_abi(name: str):
    abi_dir = pathlib.Path(settings.ABI_DIR) if settings.ABI_DIR else _DEFAULT_ABI_DIR
    with open(abi_dir / f"{name.lower()}_abi.json") as f:
        data = json.load(f)
        return data
