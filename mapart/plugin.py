"""Server plugin that converts images into block CSVs and builds them as map art."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol

from .actions import (
    CsvFormatError,
    extract_tp_coordinates,
    generate_setblock_commands,
    is_image_file,
    list_image_and_output_files,
    partition_commands,
)
from .imageconvert import (
    ImageConvertError,
    convert_image_to_csv,
    convert_to_128_image,
    generate_preview_image,
)
from .translate import Translator, sync_language_file

log = logging.getLogger(__name__)

PLUGIN_NAME = "img_print"
COMMAND_NAME = "img-p"
COMMAND_USAGES = (
    "/img-p <ls>",
    "/img-p <convert> <int: int>",
    "/img-p <print> <int: int>",
)
PERMISSION = "img_print.command.op"
DEFAULT_DATA_PATH = "plugins/image_print"
TASK_PERIOD_TICKS = 20

GREEN = "\u00a7a"
YELLOW = "\u00a7e"

FileList = list[tuple[int, str]]


class CommandSender(Protocol):
    def send_message(self, message: str) -> None: ...

    def send_error_message(self, message: str) -> None: ...

    def as_player(self) -> Player | None: ...


class Player(CommandSender, Protocol):
    name: str

    @property
    def location(self) -> tuple[float, float, float]: ...

    def teleport(self, x: float, y: float, z: float) -> None: ...


class Server(Protocol):
    locale: str

    def get_player(self, name: str) -> Player | None: ...

    def dispatch_command(self, sender: CommandSender, command: str) -> bool: ...

    def run_task_timer(
        self, plugin: object, task: Callable[[], None], delay: int, period: int
    ) -> None: ...

    def cancel_tasks(self, plugin: object) -> None: ...


def _pick(files: FileList, args: Sequence[str]) -> str | None:
    if len(args) < 2:
        return None
    try:
        index = int(args[1])
    except ValueError:
        return None
    if 1 <= index <= len(files):
        return files[index - 1][1]
    return None


class ImgPrint:
    """Handles the ``img-p`` command and builds queued map art chunk by chunk."""

    def __init__(
        self, server: Server, data_path: str | os.PathLike = DEFAULT_DATA_PATH
    ) -> None:
        self.server = server
        self.data_path = Path(data_path)
        self.language_path = self.data_path / "language"
        self.img_path = self.data_path / "images"
        self.out_path = self.data_path / "output"
        self.default_language_file = self.language_path / "lang.json"
        self.translator = Translator(self.default_language_file)
        self.img_files: FileList = []
        self.out_files: FileList = []
        self.task_player = ""
        self.build_commands: list[list[str]] = []
        self.chunk_index = 0
        self.retry_commands: list[list[str]] = []
        self.is_retry = False

    def _t(self, key: str) -> str:
        return self.translator.get_local(key)

    def _refresh_files(self) -> tuple[FileList, FileList]:
        self.img_files, self.out_files = list_image_and_output_files(
            self.img_path, self.out_path
        )
        return self.img_files, self.out_files

    def on_load(self) -> None:
        """Create the data directories and load the server locale's messages."""
        log.info("onLoad is called")
        for directory in (self.data_path, self.img_path, self.out_path, self.language_path):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                log.error("filesystem error: %s", exc)
        local_file = self.language_path / f"{self.server.locale}.json"
        try:
            self.translator = Translator(local_file)
        except json.JSONDecodeError as exc:
            log.error("malformed language file %s: %s", local_file, exc)
        sync_language_file(local_file, self.default_language_file)

    def on_enable(self) -> None:
        """Cache the file lists and start the periodic build task."""
        log.info("onEnable is called")
        self._refresh_files()
        self.server.run_task_timer(self, self.build_tick, 0, TASK_PERIOD_TICKS)

    def on_disable(self) -> None:
        """Stop every task this plugin scheduled."""
        log.info("onDisable is called")
        self.server.cancel_tasks(self)

    def on_command(self, sender: CommandSender, name: str, args: Sequence[str]) -> bool:
        """Run an ``img-p`` subcommand; returns False when it is refused."""
        if name != COMMAND_NAME:
            return False
        if not args or not args[0]:
            return True
        action = args[0]
        if action == "ls":
            self._list(sender)
        elif action == "convert":
            return self._convert(sender, args)
        elif action == "print":
            return self._print(sender, args)
        return True

    def _list(self, sender: CommandSender) -> None:
        images, outputs = self._refresh_files()
        if images:
            sender.send_message(self._t("Files in images:"))
            for index, file_name in images:
                sender.send_message(f"\n[{index}]: {file_name}")
        else:
            sender.send_message(self._t("Nothing in images"))
        if outputs:
            sender.send_message("\n" + self._t("Files in output:"))
            for index, file_name in outputs:
                sender.send_message(f"\n[{index}]: {file_name}")
        else:
            sender.send_message("\n" + self._t("Nothing in output"))

    def _convert(self, sender: CommandSender, args: Sequence[str]) -> bool:
        file_name = _pick(self.img_files, args)
        if not file_name:
            sender.send_error_message(self._t("Unknown file!"))
            return False
        image_path = self.img_path / file_name
        if not is_image_file(image_path):
            sender.send_error_message(self._t("Not a image file!"))
            return False
        try:
            convert_image_to_csv(image_path, self.out_path / f"{file_name}.csv")
        except (ImageConvertError, OSError) as exc:
            log.warning("conversion of %s failed: %s", image_path, exc)
            sender.send_error_message(self._t("Convert failed!"))
            return True
        sender.send_message(GREEN + self._t("Convert success!"))
        self._refresh_files()
        try:
            pixels = convert_to_128_image(image_path)
            generate_preview_image(pixels, self.out_path / f"preview_{file_name}")
        except (ImageConvertError, OSError) as exc:
            log.warning("preview of %s failed: %s", image_path, exc)
        return True

    def _print(self, sender: CommandSender, args: Sequence[str]) -> bool:
        player = sender.as_player()
        if player is None:
            sender.send_error_message(self._t("Console can not use this command"))
            return False
        if self.task_player and self.task_player != player.name:
            sender.send_error_message(self._t("A task in running!"))
            return False
        x, y, z = player.location
        file_name = _pick(self.out_files, args)
        if not file_name:
            sender.send_error_message(self._t("Unknown file!"))
            return False
        try:
            commands = generate_setblock_commands(self.out_path / file_name, x, y, z)
        except (CsvFormatError, OSError) as exc:
            log.warning("cannot read %s: %s", file_name, exc)
            sender.send_error_message(self._t("Print failed!"))
            return True
        self.build_commands = partition_commands(commands)
        self.task_player = player.name
        sender.send_message(GREEN + self._t("Task commit over!"))
        return True

    def build_tick(self) -> None:
        """Run the next chunk of the current build task."""
        if not self.build_commands or self.chunk_index >= len(self.build_commands):
            self.chunk_index = 0
            self.build_commands = []
            return

        player = self.server.get_player(self.task_player)
        if player is None:
            self.build_commands = []
            self.chunk_index = 0
            self.retry_commands = []
            return

        failed: list[str] = []
        failures = 0
        last_cmd = "None"
        for cmd in self.build_commands[self.chunk_index]:
            coords = extract_tp_coordinates(cmd)
            if coords is not None:
                player.teleport(*coords)
                ok = True
            else:
                ok = self.server.dispatch_command(player, cmd)
                if not ok:
                    failures += 1
            if not ok:
                failed.extend((last_cmd, cmd))
            last_cmd = cmd

        if failed:
            self.retry_commands.append(failed)
            player.send_error_message(f"{failures}" + self._t(" error!"))
            player.send_error_message(
                self._t("Build failed, will retry remaining tasks later.")
            )

        player.send_message(
            f"{YELLOW}{self.chunk_index + 1} / {len(self.build_commands)}"
        )
        self.chunk_index += 1

        if self.chunk_index >= len(self.build_commands):
            if not self.retry_commands:
                self.chunk_index = 0
                self.build_commands = []
                self.task_player = ""
                self.is_retry = False
                player.send_message(GREEN + self._t("Build over!"))
            else:
                self.build_commands = self.retry_commands
                self.retry_commands = []
                self.chunk_index = 0
                self.is_retry = True