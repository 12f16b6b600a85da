# RSCRYUTIL LOG DECRYPTION ENGINE ->

import os as _os_module
import re as _re_module


class DecryptError(ValueError):
    """Base class for every failure that aborts decryption of one log file."""

    def __init__(self, message: str, *, line: "int | None" = None, segment: "int | None" = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.segment = segment

    def in_segment(self, segment: int) -> "DecryptError":
        if self.segment is None:
            self.segment = segment
        return self

    def __str__(self) -> str:
        where = []
        if self.segment is not None:
            where.append(f"segment {self.segment}")
        if self.line is not None:
            where.append(f"encinfo line {self.line}")
        if not where:
            return self.message
        return f"{self.message} [{', '.join(where)}]"


class MalformedRecord(DecryptError):
    """A metadata line is not a well-formed ``TAG:VALUE`` record."""


class ProtocolError(DecryptError):
    """A record has the wrong tag or an undecodable value."""


class EndOfMetadata(ProtocolError):
    """The metadata stream ended where an IV record was expected."""


class BadHeader(DecryptError):
    """The leading FILETYPE cookie is missing or wrong."""


class NonMonotonicSegment(DecryptError):
    """A segment END offset lies before data that was already consumed."""


class CryptoError(DecryptError):
    pass


class BadKeyLength(CryptoError):
    pass


class StreamError(DecryptError):
    """Reading ciphertext or writing plaintext failed."""


class TruncatedCiphertext(StreamError):
    pass


class rscryutil:
    import concurrent.futures
    import pathlib
    import sys
    import typing
    from cryptography.exceptions import UnsupportedAlgorithm
    from cryptography.hazmat.decrepit.ciphers import algorithms as decrepit_algorithms
    from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
    import numpy as np
    re = _re_module

    @staticmethod
    def _env_int(name: str) -> "rscryutil.typing.Optional[int]":
        value = _os_module.getenv(name)
        if not value:
            return None
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return None
        if parsed <= 0:
            return None
        return parsed

    ENGINE_VERSION = "1.0.0"
    FILETYPE_COOKIE = "rsyslog-enrcyption-info"
    ENCINFO_SUFFIX = ".encinfo"
    EIF_MAX_RECTYPE_LEN = 31
    EIF_MAX_VALUE_LEN = 1023
    EIF_MAX_LINE_LEN = EIF_MAX_RECTYPE_LEN + EIF_MAX_VALUE_LEN + 128  # room for any valid record
    DEFAULT_ALGO = _os_module.getenv("RSCRYUTIL_ALGO", "3DES").upper()
    DEFAULT_MODE = _os_module.getenv("RSCRYUTIL_MODE", "CBC").upper()
    CHUNK_SIZE = 64 * 1024
    _CHUNK_SIZE_ENV = _env_int("RSCRYUTIL_CHUNK_SIZE")
    if _CHUNK_SIZE_ENV is not None:
        CHUNK_SIZE = _CHUNK_SIZE_ENV
    PAD_FAST_MIN = 4 * 1024
    _PAD_FAST_MIN_ENV = _env_int("RSCRYUTIL_PAD_FAST_MIN")
    if _PAD_FAST_MIN_ENV is not None:
        PAD_FAST_MIN = _PAD_FAST_MIN_ENV
    _CPU_COUNT = max(1, _os_module.cpu_count() or 1)
    _VERBOSE: typing.ClassVar[bool] = False
    _SILENT_MODE: typing.ClassVar[bool] = False
    _HEX_PATTERN = _re_module.compile(r"[0-9a-fA-F]*")
    _DECIMAL_PATTERN = _re_module.compile(r"[0-9]+")
    _ATOLL_PATTERN = _re_module.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")

    DecryptError = DecryptError
    MalformedRecord = MalformedRecord
    ProtocolError = ProtocolError
    EndOfMetadata = EndOfMetadata
    BadHeader = BadHeader
    NonMonotonicSegment = NonMonotonicSegment
    CryptoError = CryptoError
    BadKeyLength = BadKeyLength
    StreamError = StreamError
    TruncatedCiphertext = TruncatedCiphertext

    class MetadataRecord(typing.NamedTuple):
        tag: str
        value: str

    class SegmentDescriptor(typing.NamedTuple):
        iv: bytes
        end_offset: int

    class CipherSpec(typing.NamedTuple):
        name: str
        family: str
        key_len: int
        block_len: int

    _CIPHERS: typing.ClassVar[dict] = {
        "3DES": CipherSpec("3DES", "TripleDES", 24, 8),
        "AES128": CipherSpec("AES128", "AES", 16, 16),
        "AES192": CipherSpec("AES192", "AES", 24, 16),
        "AES256": CipherSpec("AES256", "AES", 32, 16),
        "CAMELLIA128": CipherSpec("CAMELLIA128", "Camellia", 16, 16),
        "CAMELLIA192": CipherSpec("CAMELLIA192", "Camellia", 24, 16),
        "CAMELLIA256": CipherSpec("CAMELLIA256", "Camellia", 32, 16),
        "BLOWFISH": CipherSpec("BLOWFISH", "Blowfish", 16, 8),
        "CAST5": CipherSpec("CAST5", "CAST5", 16, 8),
    }
    MODES = ("ECB", "CFB", "CBC", "OFB", "CTR")

    @staticmethod
    def _diag(message: str) -> None:
        if rscryutil._VERBOSE:
            print(message, file=rscryutil.sys.stderr)

    @staticmethod
    def _report(message: str) -> None:
        if not rscryutil._SILENT_MODE:
            print(message, file=rscryutil.sys.stderr)

    @staticmethod
    def _cipher_spec(algo: "rscryutil.typing.Optional[str]" = None) -> "rscryutil.CipherSpec":
        name = (algo or rscryutil.DEFAULT_ALGO).upper()
        spec = rscryutil._CIPHERS.get(name)
        if spec is None:
            raise CryptoError(
                f"unsupported cipher algorithm '{algo}' "
                f"(choose from {', '.join(rscryutil._CIPHERS)})"
            )
        return spec

    @staticmethod
    def _algorithm(spec: "rscryutil.CipherSpec", key: bytes):
        if spec.family in ("AES", "Camellia"):
            factory = getattr(rscryutil.algorithms, spec.family)
        else:
            factory = getattr(rscryutil.decrepit_algorithms, spec.family)
        return factory(key)

    @staticmethod
    def _mode(name: "rscryutil.typing.Optional[str]", iv: bytes):
        mode = (name or rscryutil.DEFAULT_MODE).upper()
        if mode == "CBC":
            return rscryutil.modes.CBC(iv)
        if mode == "CFB":
            return rscryutil.modes.CFB(iv)
        if mode == "OFB":
            return rscryutil.modes.OFB(iv)
        if mode == "CTR":
            return rscryutil.modes.CTR(iv)
        if mode == "ECB":
            return rscryutil.modes.ECB()
        raise CryptoError(f"unsupported cipher mode '{name}' (choose from {', '.join(rscryutil.MODES)})")

    @staticmethod
    def _chunk_capacity(block_len: int, chunk_size: "rscryutil.typing.Optional[int]" = None) -> int:
        chunk = rscryutil.CHUNK_SIZE if chunk_size is None else int(chunk_size)
        chunk -= chunk % block_len
        return max(block_len, chunk)

    @staticmethod
    def _coerce_key_bytes(
        key: "rscryutil.typing.Union[str, bytes, bytearray, memoryview]"
    ) -> bytes:
        if isinstance(key, str):
            return key.encode("utf-8")
        if isinstance(key, (bytes, bytearray, memoryview)):
            return bytes(key)
        raise TypeError(f"Unsupported key type: {type(key)!r}")

    @staticmethod
    def _normalize_path(path_like: "rscryutil.typing.Union[str, rscryutil.pathlib.Path]") -> "rscryutil.pathlib.Path":
        if isinstance(path_like, rscryutil.pathlib.Path):
            path = path_like
        else:
            path = rscryutil.pathlib.Path(str(path_like))
        return path.expanduser().resolve(strict=False)

    @staticmethod
    def _ensure_existing_file(path: "rscryutil.pathlib.Path") -> None:
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Input file not found: {path}")

    @staticmethod
    def _resolve_key(
        key: "rscryutil.typing.Union[str, bytes, None]" = None,
        keyfile: "rscryutil.typing.Union[str, rscryutil.pathlib.Path, None]" = None
    ) -> bytearray:
        if key is not None and keyfile is not None:
            raise ValueError("Specify either a key or a keyfile, not both")
        if keyfile is not None:
            path = rscryutil._normalize_path(keyfile)
            rscryutil._ensure_existing_file(path)
            # keyfiles hold the raw key; a trailing newline is key material too
            return bytearray(path.read_bytes())
        if not key:
            raise ValueError("A key is required for decryption (use --key or --keyfile)")
        return bytearray(rscryutil._coerce_key_bytes(key))

    class _EncInfoStream:
        """Line-counting view over an encryption info stream."""

        def __init__(self, stream):
            self._stream = stream
            self.lineno = 0

        @classmethod
        def wrap(cls, stream) -> "rscryutil._EncInfoStream":
            return stream if isinstance(stream, cls) else cls(stream)

        def readline(self, limit: int = -1):
            line = self._stream.readline(limit)
            if line:
                self.lineno += 1
            return line

    @staticmethod
    def read_record(stream) -> "rscryutil.typing.Optional[rscryutil.MetadataRecord]":
        """Read one ``TAG:VALUE`` line; ``None`` means the stream is exhausted."""
        raw = stream.readline(rscryutil.EIF_MAX_LINE_LEN)
        if not raw:
            return None
        lineno = getattr(stream, "lineno", None)
        line = raw.decode("latin-1") if isinstance(raw, (bytes, bytearray)) else raw
        if line.endswith("\n"):
            line = line[:-1]
        elif len(line) >= rscryutil.EIF_MAX_LINE_LEN:
            raise MalformedRecord(
                f"record longer than {rscryutil.EIF_MAX_LINE_LEN - 1} characters",
                line=lineno
            )
        tag, sep, value = line.partition(":")
        if not sep or len(tag) > rscryutil.EIF_MAX_RECTYPE_LEN:
            raise MalformedRecord(
                f"no ':' delimiter within the first {rscryutil.EIF_MAX_RECTYPE_LEN + 1} characters",
                line=lineno
            )
        if "\0" in tag:
            raise MalformedRecord("NUL byte in record type", line=lineno)
        if len(value) > rscryutil.EIF_MAX_VALUE_LEN:
            raise MalformedRecord(
                f"record value longer than {rscryutil.EIF_MAX_VALUE_LEN} characters",
                line=lineno
            )
        if "\0" in value:
            raise MalformedRecord("NUL byte in record value", line=lineno)
        return rscryutil.MetadataRecord(tag, value)

    @staticmethod
    def check_filetype(stream) -> None:
        try:
            record = rscryutil.read_record(stream)
        except MalformedRecord as exc:
            raise BadHeader(f"unreadable filetype record: {exc.message}", line=exc.line) from exc
        lineno = getattr(stream, "lineno", None)
        if record is None:
            raise BadHeader("encryption info file is empty", line=lineno)
        if record.tag != "FILETYPE" or record.value != rscryutil.FILETYPE_COOKIE:
            raise BadHeader(
                "invalid filetype \"cookie\" in encryption info file "
                f"(rectype: '{record.tag}', value: '{record.value}')",
                line=lineno
            )

    @staticmethod
    def read_iv(stream, expected_len: int) -> bytes:
        record = rscryutil.read_record(stream)
        lineno = getattr(stream, "lineno", None)
        if record is None:
            raise EndOfMetadata("no IV record left in encryption info file", line=lineno)
        if record.tag != "IV":
            raise ProtocolError(
                f"no IV record found when expected, record type seen is '{record.tag}'",
                line=lineno
            )
        value = record.value
        if not rscryutil._HEX_PATTERN.fullmatch(value):
            raise ProtocolError(f"invalid IV '{value}'", line=lineno)
        if len(value) % 2 or len(value) // 2 != expected_len:
            raise ProtocolError(
                f"length of IV is {len(value) / 2:g}, expected {expected_len}",
                line=lineno
            )
        return bytes.fromhex(value)

    @staticmethod
    def _atoll(text: str) -> int:
        match = rscryutil._ATOLL_PATTERN.match(text)
        return int(match.group(1)) if match else 0

    @staticmethod
    def read_end(stream, strict: bool = True) -> int:
        record = rscryutil.read_record(stream)
        lineno = getattr(stream, "lineno", None)
        if record is None:
            raise ProtocolError("no END record found when expected, encryption info file ended", line=lineno)
        if record.tag != "END":
            raise ProtocolError(
                f"no END record found when expected, record type seen is '{record.tag}'",
                line=lineno
            )
        if rscryutil._DECIMAL_PATTERN.fullmatch(record.value):
            return int(record.value)
        if strict:
            raise ProtocolError(f"invalid END offset '{record.value}'", line=lineno)
        return rscryutil._atoll(record.value)

    @staticmethod
    def read_segment(stream, block_len: int, strict: bool = True) -> "rscryutil.SegmentDescriptor":
        iv = rscryutil.read_iv(stream, block_len)
        return rscryutil.SegmentDescriptor(iv, rscryutil.read_end(stream, strict=strict))

    class CipherSession:
        """One cipher context bound to a single segment's key and IV.

        A session is opened per segment and released when the segment is
        done; chaining state carries across ``decrypt_in_place`` calls.
        """

        def __init__(
            self,
            key: bytes,
            iv: bytes,
            algo: "rscryutil.typing.Optional[str]" = None,
            mode: "rscryutil.typing.Optional[str]" = None
        ):
            spec = rscryutil._cipher_spec(algo)
            self.algo = spec.name
            self.mode = (mode or rscryutil.DEFAULT_MODE).upper()
            self.block_len = spec.block_len
            self._decryptor = None
            if len(key) != spec.key_len:
                raise BadKeyLength(
                    f"invalid key length; key is {len(key)} characters, but "
                    f"exactly {spec.key_len} characters are required"
                )
            if len(iv) != spec.block_len:
                raise CryptoError(f"IV is {len(iv)} bytes, {spec.name} needs {spec.block_len}")
            cipher_mode = rscryutil._mode(self.mode, bytes(iv))
            try:
                cipher = rscryutil.Cipher(rscryutil._algorithm(spec, bytes(key)), cipher_mode)
                self._decryptor = cipher.decryptor()
            except (ValueError, TypeError, rscryutil.UnsupportedAlgorithm) as exc:
                raise CryptoError(f"cipher open failed for {spec.name}/{self.mode}: {exc}") from exc

        @classmethod
        def open(cls, key: bytes, iv: bytes, algo: "rscryutil.typing.Optional[str]" = None,
                 mode: "rscryutil.typing.Optional[str]" = None) -> "rscryutil.CipherSession":
            return cls(key, iv, algo, mode)

        @property
        def closed(self) -> bool:
            return self._decryptor is None

        def decrypt_in_place(self, buffer: bytearray) -> None:
            if self._decryptor is None:
                raise CryptoError("cipher session is closed")
            if len(buffer) % self.block_len:
                raise CryptoError(
                    f"buffer of {len(buffer)} bytes is not a multiple of the "
                    f"{self.block_len}-byte block length"
                )
            try:
                plain = self._decryptor.update(bytes(buffer))
            except ValueError as exc:
                raise CryptoError(f"decrypt failed: {exc}") from exc
            if len(plain) != len(buffer):
                raise CryptoError(f"cipher returned {len(plain)} bytes for {len(buffer)} bytes of input")
            buffer[:] = plain

        def close(self) -> None:
            self._decryptor = None

        def __enter__(self) -> "rscryutil.CipherSession":
            return self

        def __exit__(self, exc_type, exc, tb) -> None:
            self.close()

    @staticmethod
    def strip_padding(buffer: bytearray) -> int:
        """Drop every zero byte from the first zero onward; returns the new length.

        This is not PKCS unpadding: zeros inside genuine plaintext that follow
        the first zero of a chunk are removed as well.
        """
        first = buffer.find(0)
        if first < 0:
            return len(buffer)
        n = len(buffer)
        if n - first >= rscryutil.PAD_FAST_MIN:
            tail = rscryutil.np.frombuffer(bytes(buffer[first:]), dtype=rscryutil.np.uint8)
            buffer[first:] = tail[tail != 0].tobytes()
            return len(buffer)
        dst = first
        for src in range(first, n):
            byte = buffer[src]
            if byte:
                buffer[dst] = byte
                dst += 1
        del buffer[dst:]
        return dst

    @staticmethod
    def _read_full(stream, size: int, offset: int) -> bytes:
        """Read until ``size`` bytes arrive or the stream reports end of file."""
        parts = []
        got = 0
        while got < size:
            try:
                part = stream.read(size - got)
            except OSError as exc:
                raise StreamError(f"ciphertext read failed at offset {offset + got}: {exc}") from exc
            if not part:
                break
            parts.append(part)
            got += len(part)
        return b"".join(parts)

    @staticmethod
    def _write_all(sink, data: bytearray) -> None:
        try:
            written = sink.write(data)
        except OSError as exc:
            raise StreamError(f"plaintext write failed: {exc}") from exc
        if written is not None and written != len(data):
            raise StreamError(f"short write: {written} of {len(data)} bytes")

    @staticmethod
    def decrypt_segment(
        ciphertext,
        sink,
        end_offset: int,
        offset: int,
        session: "rscryutil.CipherSession",
        *,
        chunk_size: "rscryutil.typing.Optional[int]" = None,
        strict: bool = True
    ) -> int:
        """Decrypt ciphertext up to ``end_offset``; returns the advanced running offset."""
        block_len = session.block_len
        chunk = rscryutil._chunk_capacity(block_len, chunk_size)
        remaining = end_offset - offset
        while remaining > 0:
            to_read = min(chunk, remaining)
            to_read -= to_read % block_len
            if to_read == 0:
                if strict:
                    raise TruncatedCiphertext(
                        f"segment ends {remaining} byte(s) into a {block_len}-byte cipher block "
                        f"at offset {end_offset}"
                    )
                break
            data = rscryutil._read_full(ciphertext, to_read, offset)
            if not data:
                break
            if len(data) % block_len:
                raise TruncatedCiphertext(
                    f"ciphertext ends {len(data) % block_len} byte(s) into a cipher block "
                    f"at offset {offset + len(data)}"
                )
            offset += len(data)
            remaining -= len(data)
            buffer = bytearray(data)
            session.decrypt_in_place(buffer)
            rscryutil.strip_padding(buffer)
            rscryutil._write_all(sink, buffer)
        return offset

    @staticmethod
    def decrypt_file(
        ciphertext,
        metadata,
        sink,
        key: "rscryutil.typing.Union[str, bytes, bytearray]",
        *,
        algo: "rscryutil.typing.Optional[str]" = None,
        mode: "rscryutil.typing.Optional[str]" = None,
        chunk_size: "rscryutil.typing.Optional[int]" = None,
        strict: bool = True
    ) -> int:
        """Decrypt one log file driven by its encryption info stream.

        Returns the number of segments processed. The metadata stream has no
        terminator record: running out of records where the next IV would be
        is the normal end.
        """
        spec = rscryutil._cipher_spec(algo)
        # caller bytearrays are used as is; local copies are wiped on exit
        key_bytes = key if isinstance(key, bytearray) else bytearray(rscryutil._coerce_key_bytes(key))
        try:
            return rscryutil._decrypt_segments(
                ciphertext,
                metadata,
                sink,
                key_bytes,
                spec,
                mode=mode,
                chunk_size=chunk_size,
                strict=strict
            )
        finally:
            if key_bytes is not key:
                key_bytes[:] = bytes(len(key_bytes))

    @staticmethod
    def _decrypt_segments(
        ciphertext,
        metadata,
        sink,
        key_bytes: bytearray,
        spec: "rscryutil.CipherSpec",
        *,
        mode: "rscryutil.typing.Optional[str]",
        chunk_size: "rscryutil.typing.Optional[int]",
        strict: bool
    ) -> int:
        metadata = rscryutil._EncInfoStream.wrap(metadata)
        rscryutil.check_filetype(metadata)
        offset = 0
        last_end = 0
        segment = 0
        while True:
            try:
                iv = rscryutil.read_iv(metadata, spec.block_len)
            except EndOfMetadata:
                break
            except DecryptError as exc:
                raise exc.in_segment(segment + 1)
            segment += 1
            try:
                with rscryutil.CipherSession(key_bytes, iv, spec.name, mode) as session:
                    end_offset = rscryutil.read_end(metadata, strict=strict)
                    if end_offset < offset or end_offset < last_end:
                        raise NonMonotonicSegment(
                            f"END offset {end_offset} lies before offset {max(offset, last_end)} "
                            "already consumed",
                            line=metadata.lineno
                        )
                    last_end = end_offset
                    rscryutil._diag(f"segment {segment}: iv {iv.hex()}, bytes {offset}..{end_offset}")
                    offset = rscryutil.decrypt_segment(
                        ciphertext,
                        sink,
                        end_offset,
                        offset,
                        session,
                        chunk_size=chunk_size,
                        strict=strict
                    )
            except DecryptError as exc:
                raise exc.in_segment(segment)
        return segment

    @staticmethod
    def _output_path_for(log_path: "rscryutil.pathlib.Path", output_dir) -> "rscryutil.pathlib.Path":
        out_dir = rscryutil._normalize_path(output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / log_path.name
        info_path = log_path.with_name(log_path.name + rscryutil.ENCINFO_SUFFIX)
        if out_path in (log_path, info_path):
            raise ValueError(f"Refusing to overwrite input file {log_path}")
        return out_path

    @staticmethod
    def decrypt_path(
        path: "rscryutil.typing.Union[str, rscryutil.pathlib.Path]",
        key: "rscryutil.typing.Union[str, bytes, bytearray]",
        sink=None,
        *,
        output_dir=None,
        algo: "rscryutil.typing.Optional[str]" = None,
        mode: "rscryutil.typing.Optional[str]" = None,
        chunk_size: "rscryutil.typing.Optional[int]" = None,
        strict: bool = True
    ) -> int:
        if str(path) == "-":
            raise ValueError("decrypt mode cannot work on stdin")
        log_path = rscryutil._normalize_path(path)
        rscryutil._ensure_existing_file(log_path)
        info_path = log_path.with_name(log_path.name + rscryutil.ENCINFO_SUFFIX)
        rscryutil._ensure_existing_file(info_path)
        options = {"algo": algo, "mode": mode, "chunk_size": chunk_size, "strict": strict}
        with open(log_path, "rb") as ciphertext, open(info_path, "rb") as metadata:
            if output_dir is not None:
                with open(rscryutil._output_path_for(log_path, output_dir), "wb") as out:
                    return rscryutil.decrypt_file(ciphertext, metadata, out, key, **options)
            if sink is None:
                sink = rscryutil.sys.stdout.buffer
            try:
                return rscryutil.decrypt_file(ciphertext, metadata, sink, key, **options)
            finally:
                sink.flush()

    @staticmethod
    def decrypt_paths(
        files: "rscryutil.typing.Union[str, rscryutil.pathlib.Path, rscryutil.typing.Iterable[rscryutil.typing.Union[str, rscryutil.pathlib.Path]]]",
        key: "rscryutil.typing.Union[str, bytes, bytearray]",
        sink=None,
        *,
        output_dir=None,
        algo: "rscryutil.typing.Optional[str]" = None,
        mode: "rscryutil.typing.Optional[str]" = None,
        chunk_size: "rscryutil.typing.Optional[int]" = None,
        strict: bool = True,
        silent: bool = False
    ):
        if isinstance(files, (str, rscryutil.pathlib.Path)):
            paths = [files]
        else:
            paths = list(files)
        if not paths:
            raise ValueError("No files provided")

        # repeated inputs get their own "path [n]" entry
        labels = []
        occurrences: dict[str, int] = {}
        for path in paths:
            label = str(path)
            occurrences[label] = occurrences.get(label, 0) + 1
            labels.append(label if occurrences[label] == 1 else f"{label} [{occurrences[label]}]")

        colliding: set[int] = set()
        if output_dir is not None:
            by_name: dict[str, list[int]] = {}
            for index, path in enumerate(paths):
                by_name.setdefault(rscryutil.pathlib.Path(str(path)).name, []).append(index)
            for indexes in by_name.values():
                if len(indexes) > 1:
                    colliding.update(indexes)

        previous_silent = rscryutil._SILENT_MODE
        rscryutil._SILENT_MODE = silent
        try:
            results: dict[str, str] = {}

            def _process(index: int) -> tuple[str, str]:
                path = paths[index]
                label = labels[index]
                if index in colliding:
                    name = rscryutil.pathlib.Path(str(path)).name
                    rscryutil._report(f"error processing file {path}: output name {name} is shared")
                    return label, f"FAIL! output name collision: {name} would be written by more than one input"
                try:
                    segments = rscryutil.decrypt_path(
                        path,
                        key,
                        sink,
                        output_dir=output_dir,
                        algo=algo,
                        mode=mode,
                        chunk_size=chunk_size,
                        strict=strict
                    )
                except (ValueError, OSError) as exc:
                    rscryutil._report(f"error processing file {path}: {exc}")
                    return label, f"FAIL! {exc}"
                rscryutil._diag(f"{path}: {segments} segment(s) decrypted")
                return label, "SUCCESS!"

            # a shared sink keeps files in order, separate outputs can fan out
            use_parallel = output_dir is not None and len(paths) > 1 and rscryutil._CPU_COUNT > 1
            if use_parallel:
                max_workers = min(len(paths), rscryutil._CPU_COUNT)
                with rscryutil.concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
                    for file_id, status in executor.map(_process, range(len(paths))):
                        results[file_id] = status
            else:
                for index in range(len(paths)):
                    file_id, status = _process(index)
                    results[file_id] = status
        finally:
            rscryutil._SILENT_MODE = previous_silent

        if len(paths) == 1:
            return next(iter(results.values()))
        return results


def cli(argv=None) -> int:
    import argparse

    import colorama

    parser = argparse.ArgumentParser(prog="rscryutil", description="Decrypt rsyslog encrypted log files")
    parser.add_argument(
        "files",
        nargs="*",
        help="Encrypted log files; each needs its <file>.encinfo companion"
    )
    parser.add_argument(
        "-d", "--decrypt",
        action="store_true",
        help="Decrypt the given files (the default and only mode)"
    )
    parser.add_argument(
        "-k", "--key",
        default=None,
        help="Key text (insecure, visible in the process list)"
    )
    parser.add_argument(
        "-K", "--keyfile",
        default=None,
        help="Read the key verbatim from this file"
    )
    parser.add_argument(
        "-a", "--algo",
        default=rscryutil.DEFAULT_ALGO,
        help=f"Cipher algorithm: {', '.join(rscryutil._CIPHERS)} (default: %(default)s)"
    )
    parser.add_argument(
        "-m", "--mode",
        default=rscryutil.DEFAULT_MODE,
        help=f"Cipher mode: {', '.join(rscryutil.MODES)} (default: %(default)s)"
    )
    parser.add_argument(
        "-o", "--output-dir",
        default=None,
        help="Write each plaintext to DIR/<name> instead of stdout"
    )
    parser.add_argument(
        "--lenient",
        dest="strict",
        action="store_false",
        help="Accept unparsable END offsets as 0 and stop silently on unaligned segment tails"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print per-segment diagnostics to stderr"
    )
    parser.add_argument(
        "-V", "--version",
        action="store_true",
        help="Print the version and exit"
    )

    args = parser.parse_args(argv)
    err = rscryutil.sys.stderr

    if args.version:
        from rscryutil.version import __version__
        print(f"rscryutil {__version__}", file=err)
        return 0

    if args.key is not None:
        print(
            "WARNING: specifying the actual key via the command line is highly insecure\n"
            "Do NOT use this for PRODUCTION use.",
            file=err
        )
    if not args.files:
        print("decrypt mode cannot work on stdin", file=err)
        return 1

    try:
        key = rscryutil._resolve_key(args.key, args.keyfile)
    except (ValueError, OSError) as exc:
        print(f"Failed to load key: {exc}", file=err)
        return 1

    try:
        spec = rscryutil._cipher_spec(args.algo)
        rscryutil._mode(args.mode, bytes(spec.block_len))
        if len(key) != spec.key_len:
            raise BadKeyLength(
                f"invalid key length; key is {len(key)} characters, but "
                f"exactly {spec.key_len} characters are required"
            )
    except CryptoError as exc:
        print(exc, file=err)
        key[:] = bytes(len(key))
        return 1

    colorama.just_fix_windows_console()
    use_color = bool(getattr(err, "isatty", lambda: False)())
    good = colorama.Fore.GREEN if use_color else ""
    bad = colorama.Fore.RED if use_color else ""
    reset = colorama.Style.RESET_ALL if use_color else ""

    previous_verbose = rscryutil._VERBOSE
    rscryutil._VERBOSE = args.verbose
    try:
        result = rscryutil.decrypt_paths(
            args.files,
            key,
            output_dir=args.output_dir,
            algo=spec.name,
            mode=args.mode,
            strict=args.strict,
            silent=True
        )
    finally:
        rscryutil._VERBOSE = previous_verbose
        key[:] = bytes(len(key))

    if not isinstance(result, dict):
        result = {str(args.files[0]): result}
    failures = 0
    for path, status in result.items():
        if status == "SUCCESS!":
            print(f"{path}: {good}{status}{reset}", file=err)
        else:
            failures += 1
            print(f"{path}: {bad}{status}{reset}", file=err)
    return 0 if failures == 0 else 1


def main(argv=None) -> int:
    return cli(argv)


__all__ = [
    "rscryutil",
    "cli",
    "DecryptError",
    "MalformedRecord",
    "ProtocolError",
    "EndOfMetadata",
    "BadHeader",
    "NonMonotonicSegment",
    "CryptoError",
    "BadKeyLength",
    "StreamError",
    "TruncatedCiphertext",
]


if __name__ == "__main__":
    raise SystemExit(main())
