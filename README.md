# mapart

Turn any picture into a 128×128 block-based map artwork.

`mapart` takes an image, fits it to a 128×128 canvas and matches every pixel
to the nearest block colour from a fixed palette. Colour distance is measured
in CIE Lab. The result is written as a CSV file of `x,z,block_id` rows. That
CSV can then be turned into `tp`/`setblock` commands, grouped into 32×32
chunks in serpentine order, ready for a server to run one chunk at a time.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Converting an image (`mapart.imageconvert`)

```python
from mapart.imageconvert import convert_image_to_csv, convert_to_128_image, generate_preview_image

convert_image_to_csv("photo.png", "photo.csv")

pixels = convert_to_128_image("photo.png")      # 128*128*3 bytes of RGB
generate_preview_image(pixels, "preview_photo.png")
```

The image is fitted to the canvas according to its size:

- Images at least 128 pixels on both sides are centre-cropped to a square and
  then scaled down with nearest-neighbour sampling.
- Smaller images are scaled to fit with nearest-neighbour sampling. The aspect
  ratio is kept and the result is centred on a black background.

`resize_to_128(data, width, height, channels)` does this fitting on raw
interleaved pixel bytes. `check_image_size` returns a `SizeStatus`
(`SMALLER`, `EXACT` or `LARGER`) that says which case applies.

Accepted extensions are `.png .jpg .jpeg .bmp .tga .psd .gif .hdr .pic .pnm`.
`is_supported_image_format` and `file_extension` check a path against this
list.

The functions signal failure by raising an error:

- A missing input file raises `FileNotFoundError`.
- An unsupported extension or an unreadable image raises `ImageConvertError`.

`convert_many(paths, output_dir)` converts a list of files into `output_dir`
and names each result `<stem>_mc_data.csv`. It logs the files that fail and
returns `True` if at least one conversion succeeded.

The CSV starts with the header `x,z,block_id`. It holds one row per pixel,
row by row from the top-left corner.

## Palette matching (`mapart.palette`)

```python
from mapart.palette import PALETTE, best_block, rgb_to_lab

block = best_block(81, 189, 184)
print(block.internal_id)   # minecraft:diamond_block
print(block.rgb)           # (81, 189, 184)
print(rgb_to_lab(255, 255, 255))
```

`PALETTE` is a tuple of `MapBlock` objects, and `build_palette()` builds a
fresh copy of it. Each `MapBlock` has an `internal_id`, `r`/`g`/`b` values
and a precomputed `lab` colour. When two blocks are equally close, the one
earlier in the palette wins.

## From CSV to commands (`mapart.actions`)

```python
from mapart.actions import generate_setblock_commands, partition_commands

commands = generate_setblock_commands("photo.csv", 100.0, 64.0, -20.0)
chunks = partition_commands(commands)
```

Every CSV row produces two commands:

1. `tp @s x y z`
2. `setblock x y z block_id`

The coordinates are the origin plus the row's `x`/`z`, rounded to whole
blocks. A malformed CSV raises `CsvFormatError`, which is a `ValueError`.
Reasons include a wrong header, missing fields, an empty block id, or a
non-integer coordinate. A file that cannot be read raises `OSError`.

`partition_commands` works only on the command list of a full 128×128 map,
which is 32,768 commands. It returns 16 chunks of 32×32 blocks. The chunk rows
are walked left to right, then right to left, in turn. Input of any other
size gives an empty list.

The module also has these helpers:

- `extract_tp_coordinates` parses a `tp [@s] x y z` command.
- `is_image_file` and `is_csv_file` test a file's extension.
- `list_image_and_output_files(img_dir, out_dir)` returns the image files and
  the CSV files of two directories. Each list is sorted and numbered from 1.

## Localised messages (`mapart.translate`)

`Translator(lang_file)` loads a JSON object that maps message keys to
`str.format` templates. `get_local(key)` returns the message, or the key
itself when there is none. `tr(key, *args)` fills in `{}` fields.
`load()` returns `False` if the file cannot be opened.

`sync_language_file(src, dst)` copies `src` over `dst` when their contents
differ.

## Server plugin logic (`mapart.plugin`)

`ImgPrint(server, data_path)` holds the handling of the `img-p` command.

`on_load()` does the following:

- It creates `images/`, `output/` and `language/` under `data_path`.
- It loads `language/<locale>.json` for the server's locale.
- It syncs that file to `language/lang.json`.

`on_enable()` caches the file lists and asks the server to call `build_tick`
every 20 ticks. `on_disable()` cancels the plugin's tasks.

`on_command(sender, "img-p", args)` supports three actions:

- `ls` lists the images and the CSV outputs with their numbers.
- `convert <n>` converts image number *n* into `output/<name>.csv` and writes
  a PNG preview to `output/preview_<name>`.
- `print <n>` queues output number *n* to be built at the calling player's
  position. Only one player's task may be queued at a time.

Each call to `build_tick` runs one chunk:

- It carries out `tp` commands with `player.teleport`.
- It hands every other command to `server.dispatch_command`.
- It queues each failed command, together with the command before it, for
  another pass. The passes repeat until nothing fails or the player is no
  longer online.

## What this package does not do

`mapart` has no connection to a game server and no command-line tool.
`ImgPrint` expects the host to supply the server, sender and player objects.
These are described by the `Server`, `CommandSender` and `Player` protocols in
`mapart.plugin`:

- `Server` needs `locale`, `get_player`, `dispatch_command`, `run_task_timer`
  and `cancel_tasks`.
- `CommandSender` needs `send_message`, `send_error_message` and `as_player`.
- `Player` is a `CommandSender` that also has `name`, `location` and
  `teleport`.

Registering the command, its permission and the scheduling itself are left to
that host.