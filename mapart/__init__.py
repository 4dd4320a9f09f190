"""Convert images into 128x128 block map art, block CSVs and the commands that build them."""

__version__ = "0.1.1"