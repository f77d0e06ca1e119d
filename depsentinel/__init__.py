"""depsentinel: audit Go dependencies against Sonatype OSS Index."""

__version__ = "0.1.0"
