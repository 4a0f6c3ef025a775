from __future__ import annotations

import argparse
import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "LiveTranslation"

DEFAULTS: dict[str, Any] = {
    "list_devices": False,
    "device": None,
    "sr": 16000,
    "channels": 1,
    "capture_path": None,
    "language": "English",
    "transcriber": "openai",
    "transcription_model": "whisper-1",
    "whisper_model": "base",
    "whisper_device": "cpu",
    "whisper_compute_type": "int8",
    "translator": "openai",
    "chat_model": "gpt-4o-mini",
    "api_base_url": None,
    "request_timeout": 60.0,
    "print_console": True,
    "debug": False,
}
CONFIG_KEYS: tuple[str, ...] = tuple(DEFAULTS.keys())


@dataclass(frozen=True)
class AppPaths:
    config_dir: Path
    config_path: Path
    cache_dir: Path


def app_paths() -> AppPaths:
    config_dir = Path(user_config_dir(APP_NAME, APP_NAME))
    return AppPaths(
        config_dir=config_dir,
        config_path=config_dir / "config.json",
        cache_dir=Path(user_cache_dir(APP_NAME, APP_NAME)),
    )


def default_capture_path() -> Path:
    return app_paths().cache_dir / "recording.ogg"


def _load_json_dict(path: Path) -> dict[str, Any]:
    # Accept UTF-8 with or without BOM for Windows-edited config files.
    with path.open("r", encoding="utf-8-sig") as f:
        loaded = json.load(f)
    if not isinstance(loaded, dict):
        raise ValueError(f"config must be a JSON object: {path}")
    return loaded


def _write_json_dict(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
        f.write("\n")


def _known_only(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: payload[key] for key in CONFIG_KEYS if key in payload}


def load_default_config() -> dict[str, Any]:
    return copy.deepcopy(DEFAULTS)


def ensure_user_config_exists(defaults: dict[str, Any] | None = None) -> Path:
    paths = app_paths()
    if paths.config_path.exists():
        return paths.config_path
    _write_json_dict(paths.config_path, defaults or load_default_config())
    return paths.config_path


def load_user_config(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    defaults = load_default_config()
    if config_path:
        chosen = Path(config_path)
        if not chosen.exists():
            raise SystemExit(f"Config file not found: {chosen}")
    else:
        chosen = ensure_user_config_exists(defaults)
    merged = dict(defaults)
    merged.update(_known_only(_load_json_dict(chosen)))
    return merged, chosen


def save_user_config(values: dict[str, Any], config_path: str | None = None) -> Path:
    if config_path:
        path = Path(config_path)
    else:
        path = ensure_user_config_exists()
    existing = _known_only(_load_json_dict(path)) if path.exists() else {}
    merged = load_default_config()
    merged.update(existing)
    merged.update(_known_only(values))
    _write_json_dict(path, merged)
    return path


def resolve_defaults(config_path: str | None = None) -> tuple[dict[str, Any], Path]:
    return load_user_config(config_path=config_path)


def parser_with_defaults(defaults: dict[str, Any]) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="livetrans", description="Live conversation translator")
    p.add_argument("--config", default=None, help="JSON config path (CLI flags override config)")
    p.add_argument("--list-devices", action="store_true", help="print audio devices and exit")
    p.add_argument(
        "--save-config",
        action="store_true",
        help="write the effective settings to the config file and exit",
    )
    p.add_argument("--device", type=int, default=defaults["device"], help="sounddevice device id")
    p.add_argument("--sr", type=int, default=defaults["sr"], help="capture sample rate (Hz)")
    p.add_argument("--channels", type=int, default=defaults["channels"], help="capture channels")
    p.add_argument(
        "--capture-path",
        default=defaults["capture_path"],
        help="reusable capture file (default: user cache dir)",
    )
    p.add_argument(
        "--language",
        default=defaults["language"],
        help="default conversation language, passed to transcription and translation as a hint",
    )
    p.add_argument(
        "--transcriber",
        default=defaults["transcriber"],
        choices=["openai", "faster-whisper"],
        help="speech-to-text backend",
    )
    p.add_argument(
        "--transcription-model",
        default=defaults["transcription_model"],
        help="OpenAI transcription model",
    )
    p.add_argument("--whisper-model", default=defaults["whisper_model"], help="faster-whisper model size")
    p.add_argument("--whisper-device", default=defaults["whisper_device"], help="faster-whisper device")
    p.add_argument(
        "--whisper-compute-type",
        default=defaults["whisper_compute_type"],
        help="faster-whisper compute type",
    )
    p.add_argument(
        "--translator",
        default=defaults["translator"],
        choices=["openai", "stub"],
        help="streaming translation backend",
    )
    p.add_argument("--chat-model", default=defaults["chat_model"], help="OpenAI chat model")
    p.add_argument("--api-base-url", default=defaults["api_base_url"], help="override OpenAI API base URL")
    p.add_argument(
        "--request-timeout",
        type=float,
        default=defaults["request_timeout"],
        help="network timeout for service calls (seconds)",
    )
    p.add_argument(
        "--print-console",
        action=argparse.BooleanOptionalAction,
        default=defaults["print_console"],
        help="print state changes and translations to the console",
    )
    p.add_argument("--debug", action="store_true", help="log parser and stream details")
    return p


def resolve_args(argv: list[str] | None = None) -> argparse.Namespace:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    pre_args, _ = pre.parse_known_args(argv)
    defaults, _ = resolve_defaults(config_path=pre_args.config)
    parser = parser_with_defaults(defaults)
    args = parser.parse_args(argv)
    if defaults.get("list_devices"):
        args.list_devices = True
    if defaults.get("debug"):
        args.debug = True
    return args
