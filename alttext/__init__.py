"""Alt-text generation for a media library: vision-model descriptions persisted as image metadata."""

__version__ = "0.1.0"
