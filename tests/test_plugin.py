import json

import pytest
from PIL import Image

from mapart.plugin import GREEN, TASK_PERIOD_TICKS, YELLOW, ImgPrint


class FakePlayer:
    def __init__(self, name="alice", location=(10.0, 64.0, 20.0)):
        self.name = name
        self.location = location
        self.messages = []
        self.errors = []
        self.teleports = []

    def send_message(self, message):
        self.messages.append(message)

    def send_error_message(self, message):
        self.errors.append(message)

    def as_player(self):
        return self

    def teleport(self, x, y, z):
        self.teleports.append((x, y, z))


class FakeConsole:
    def __init__(self):
        self.messages = []
        self.errors = []

    def send_message(self, message):
        self.messages.append(message)

    def send_error_message(self, message):
        self.errors.append(message)

    def as_player(self):
        return None


class FakeServer:
    def __init__(self, locale="en_US"):
        self.locale = locale
        self.players = {}
        self.dispatched = []
        self.failing = set()
        self.timers = []
        self.cancelled = []

    def get_player(self, name):
        return self.players.get(name)

    def dispatch_command(self, sender, command):
        self.dispatched.append(command)
        return command not in self.failing

    def run_task_timer(self, plugin, task, delay, period):
        self.timers.append((task, delay, period))

    def cancel_tasks(self, plugin):
        self.cancelled.append(plugin)


@pytest.fixture
def setup(tmp_path):
    server = FakeServer()
    player = FakePlayer()
    server.players[player.name] = player
    plugin = ImgPrint(server, tmp_path / "data")
    plugin.on_load()
    return plugin, server, player


def _write_csv(path, size=128):
    lines = ["x,z,block_id"]
    lines += [f"{x},{z},minecraft:stone" for z in range(size) for x in range(size)]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def test_on_load_creates_directories(setup):
    plugin, _, _ = setup
    for directory in (plugin.data_path, plugin.img_path, plugin.out_path, plugin.language_path):
        assert directory.is_dir()


def test_on_load_uses_locale_file_and_syncs_default(tmp_path):
    server = FakeServer(locale="en_US")
    plugin = ImgPrint(server, tmp_path)
    (tmp_path / "language").mkdir(parents=True)
    (tmp_path / "language" / "en_US.json").write_text(
        json.dumps({"Nothing in images": "No images"}), encoding="utf-8"
    )
    plugin.on_load()
    console = FakeConsole()
    plugin.on_command(console, "img-p", ["ls"])
    assert console.messages[0] == "No images"
    assert (tmp_path / "language" / "lang.json").read_bytes() == (
        tmp_path / "language" / "en_US.json"
    ).read_bytes()


def test_enable_schedules_and_disable_cancels(setup):
    plugin, server, _ = setup
    plugin.on_enable()
    assert server.timers == [(plugin.build_tick, 0, TASK_PERIOD_TICKS)]
    plugin.on_disable()
    assert server.cancelled == [plugin]


def test_other_command_name_is_not_handled(setup):
    plugin, _, player = setup
    assert plugin.on_command(player, "other", ["ls"]) is False


def test_ls_empty(setup):
    plugin, _, player = setup
    assert plugin.on_command(player, "img-p", ["ls"]) is True
    assert player.messages == ["Nothing in images", "\nNothing in output"]


def test_ls_lists_files(setup):
    plugin, _, player = setup
    Image.new("RGB", (4, 4)).save(plugin.img_path / "b.png")
    Image.new("RGB", (4, 4)).save(plugin.img_path / "a.png")
    (plugin.img_path / "notes.txt").write_text("x")
    _write_csv(plugin.out_path / "a.png.csv", size=1)
    plugin.on_command(player, "img-p", ["ls"])
    assert player.messages == [
        "Files in images:",
        "\n[1]: a.png",
        "\n[2]: b.png",
        "\nFiles in output:",
        "\n[1]: a.png.csv",
    ]
    assert plugin.img_files == [(1, "a.png"), (2, "b.png")]


def test_convert_writes_csv_and_preview(setup):
    plugin, _, player = setup
    Image.new("RGB", (128, 128), (97, 97, 97)).save(plugin.img_path / "pic.png")
    plugin.on_enable()
    assert plugin.on_command(player, "img-p", ["convert", "1"]) is True
    assert player.messages == [GREEN + "Convert success!"]
    csv_lines = (plugin.out_path / "pic.png.csv").read_text().splitlines()
    assert csv_lines[0] == "x,z,block_id"
    assert len(csv_lines) == 128 * 128 + 1
    assert csv_lines[1] == "0,0,minecraft:stone"
    assert plugin.out_files == [(1, "pic.png.csv")]
    with Image.open(plugin.out_path / "preview_pic.png") as preview:
        assert preview.size == (128, 128)


@pytest.mark.parametrize("args", [["convert", "5"], ["convert", "abc"], ["convert"]])
def test_convert_unknown_file(setup, args):
    plugin, _, player = setup
    plugin.on_enable()
    assert plugin.on_command(player, "img-p", args) is False
    assert player.errors == ["Unknown file!"]


def test_convert_failure_reports_error(setup):
    plugin, _, player = setup
    (plugin.img_path / "broken.png").write_bytes(b"not an image")
    plugin.on_enable()
    plugin.on_command(player, "img-p", ["convert", "1"])
    assert player.errors == ["Convert failed!"]


def test_print_from_console_refused(setup):
    plugin, _, _ = setup
    console = FakeConsole()
    assert plugin.on_command(console, "img-p", ["print", "1"]) is False
    assert console.errors == ["Console can not use this command"]


def test_print_bad_csv_fails(setup):
    plugin, _, player = setup
    (plugin.out_path / "bad.csv").write_text("a,b,c\n")
    plugin.on_enable()
    plugin.on_command(player, "img-p", ["print", "1"])
    assert player.errors == ["Print failed!"]
    assert plugin.task_player == ""


def test_print_queues_chunks_and_blocks_others(setup):
    plugin, server, player = setup
    _write_csv(plugin.out_path / "map.csv")
    plugin.on_enable()
    assert plugin.on_command(player, "img-p", ["print", "1"]) is True
    assert player.messages[-1] == GREEN + "Task commit over!"
    assert plugin.task_player == "alice"
    assert len(plugin.build_commands) == 16
    assert plugin.build_commands[0][:2] == ["tp @s 10 64 20", "setblock 10 64 20 minecraft:stone"]

    other = FakePlayer("bob")
    assert plugin.on_command(other, "img-p", ["print", "1"]) is False
    assert other.errors == ["A task in running!"]


def test_build_runs_to_completion(setup):
    plugin, server, player = setup
    _write_csv(plugin.out_path / "map.csv")
    plugin.on_enable()
    plugin.on_command(player, "img-p", ["print", "1"])
    for _ in range(16):
        plugin.build_tick()
    assert player.messages[-2] == f"{YELLOW}16 / 16"
    assert player.messages[-1] == GREEN + "Build over!"
    assert len(player.teleports) == 128 * 128
    assert len(server.dispatched) == 128 * 128
    assert plugin.task_player == ""
    assert plugin.build_commands == []
    assert player.errors == []


def test_failed_commands_are_retried(setup):
    plugin, server, player = setup
    _write_csv(plugin.out_path / "map.csv")
    plugin.on_enable()
    plugin.on_command(player, "img-p", ["print", "1"])
    failing = "setblock 10 64 20 minecraft:stone"
    server.failing.add(failing)
    for _ in range(16):
        plugin.build_tick()
    assert player.errors == ["1 error!", "Build failed, will retry remaining tasks later."]
    assert plugin.is_retry is True
    assert plugin.build_commands == [["tp @s 10 64 20", failing]]
    assert plugin.chunk_index == 0

    server.failing.clear()
    plugin.build_tick()
    assert player.messages[-1] == GREEN + "Build over!"
    assert plugin.is_retry is False
    assert plugin.task_player == ""


def test_build_stops_when_player_gone(setup):
    plugin, server, player = setup
    _write_csv(plugin.out_path / "map.csv")
    plugin.on_enable()
    plugin.on_command(player, "img-p", ["print", "1"])
    del server.players["alice"]
    plugin.build_tick()
    assert plugin.build_commands == []
    assert plugin.chunk_index == 0
    assert server.dispatched == []


def test_tick_without_task_does_nothing(setup):
    plugin, server, player = setup
    plugin.build_tick()
    assert plugin.build_commands == []
    assert player.messages == []
    assert server.dispatched == []