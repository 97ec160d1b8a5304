"""LcfTrans: translation catalogs for RPG Maker 2000/2003 games."""

__version__ = "0.8.0"
