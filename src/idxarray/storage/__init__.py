from idxarray.storage._local import CompressionLiteral, FileSource

__all__ = ["CompressionLiteral", "FileSource"]
