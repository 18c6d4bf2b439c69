"""
NOMEX_LAYERS lookup for Solid Edge part files.

Reads the custom properties of ``<code>.psm`` files, first through the
file properties component and, if the file is locked, through a running or
freshly started Solid Edge instance.
"""
