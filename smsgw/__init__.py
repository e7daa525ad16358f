"""CMPP and SMGP short-message gateway codecs, TLV records, sequence generators and YAML configuration."""

__version__ = "0.1.0"