from .main import *
from .version import __version__

def read_record(stream): return rscryutil.read_record(stream)
def check_filetype(stream): return rscryutil.check_filetype(stream)
def read_iv(stream, expected_len: int): return rscryutil.read_iv(stream, expected_len)
def read_end(stream, strict: bool = True): return rscryutil.read_end(stream, strict=strict)

def strip_padding(data: bytes) -> bytes:
    buffer = bytearray(data)
    rscryutil.strip_padding(buffer)
    return bytes(buffer)

def decrypt_file(
    ciphertext,
    metadata,
    sink,
    key,
    *,
    algo: str | None = None,
    mode: str | None = None,
    chunk_size: int | None = None,
    strict: bool = True
):
    return rscryutil.decrypt_file(
        ciphertext,
        metadata,
        sink,
        key,
        algo=algo,
        mode=mode,
        chunk_size=chunk_size,
        strict=strict
    )

def decrypt_logfile(path: str, key, output_dir: str | None = None, strict: bool = True):
    return rscryutil.decrypt_path(path, key, output_dir=output_dir, strict=strict)

def decrypt_logfiles(files, key, output_dir: str | None = None, strict: bool = True, silent: bool = False):
    return rscryutil.decrypt_paths(files, key, output_dir=output_dir, strict=strict, silent=silent)
