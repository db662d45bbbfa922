"""vdfsgen: build VDFS volumes for the ZenGin asset loader."""

__version__ = "0.3.0"
