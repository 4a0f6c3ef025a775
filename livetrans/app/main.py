from __future__ import annotations

import logging
import sys
from typing import TextIO

from livetrans.app.config import resolve_args, save_user_config
from livetrans.app.logging_setup import setup_app_logger
from livetrans.app.services import build_session
from livetrans.app.session import TranslationSession
from livetrans.app.state import ConversationPhase
from livetrans.audio.capture import AudioCapture
from livetrans.errors import LiveTranslationError
from livetrans.ui.console import ConsolePresenter, render_log

HELP = (
    "Enter: start/stop recording | c: cancel | p: play last capture | "
    "r: reset after error | l: show log | lang <name>: set language | q: quit"
)


class ConsoleApp:
    def __init__(
        self,
        session: TranslationSession,
        *,
        language: str,
        out: TextIO | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.session = session
        self.language = language
        self.out = out or sys.stdout
        self.logger = logger

    def _say(self, text: str) -> None:
        self.out.write(text + "\n")
        self.out.flush()

    def toggle_recording(self) -> None:
        if self.session.phase == ConversationPhase.RECORDING_SPEECH:
            self.session.finish_capture(self.language)
        else:
            self.session.start_capture()

    def handle(self, line: str) -> bool:
        """Run one command; return False when the loop should stop."""
        raw = line.strip()
        cmd = raw.lower()
        try:
            if cmd == "":
                self.toggle_recording()
            elif cmd == "c":
                self.session.cancel()
            elif cmd == "p":
                self.session.play_last_capture()
            elif cmd == "r":
                self.session.reset()
            elif cmd == "l":
                self._say(render_log(self.session.translations))
            elif cmd.startswith("lang "):
                self.language = raw[5:].strip() or self.language
                self._say(f"language: {self.language}")
            elif cmd in ("q", "quit", "exit"):
                return False
            else:
                self._say(HELP)
        except LiveTranslationError as e:
            if self.logger is not None:
                self.logger.warning("command_failed", extra={"command": cmd, "error": str(e)})
            self._say(f"[!] {e}")
        return True


def main(argv: list[str] | None = None) -> int:
    args = resolve_args(argv)
    logger, _log_dir, log_path = setup_app_logger(debug=bool(args.debug))
    logger.info("app_start", extra={"config_path": str(getattr(args, "config", "")), "argv": argv or []})

    if args.save_config:
        values = {k: v for k, v in vars(args).items() if k != "list_devices"}
        saved = save_user_config(values, config_path=args.config)
        logger.info("config_saved", extra={"config_path": str(saved)})
        print(f"saved settings to {saved}")
        return 0

    if args.list_devices:
        print(AudioCapture.list_devices())
        return 0

    session = build_session(args)
    if args.print_console:
        session.subscribe(ConsolePresenter())
    app = ConsoleApp(session, language=str(args.language), logger=logger)

    print(HELP)
    print(f"language: {app.language} | log: {log_path}")
    try:
        while True:
            try:
                line = input()
            except EOFError:
                break
            if not app.handle(line):
                break
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")
    finally:
        session.close()
        logger.info("app_stop", extra={"translations": len(session.log)})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
