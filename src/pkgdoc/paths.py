"""Import path predicates. Pure functions, no I/O."""

from __future__ import annotations

import re

_BAD_TLDS = (".png", ".html", ".jpg", ".ico", ".txt", ".xml", ".go", ".gif")
_BAD_CHARS = frozenset("!\"#$%&'()*,:;<=>?[]^`{|}")
_VALID_HOST = re.compile(r"^[-A-Za-z0-9]+(?:\.[-A-Za-z0-9]+)+")

STANDARD_PACKAGES: frozenset[str] = frozenset(
    """
    archive/tar archive/zip bufio bytes cmp compress/bzip2 compress/flate
    compress/gzip compress/lzw compress/zlib container/heap container/list
    container/ring context crypto crypto/aes crypto/cipher crypto/des
    crypto/dsa crypto/ecdh crypto/ecdsa crypto/ed25519 crypto/elliptic
    crypto/hmac crypto/md5 crypto/rand crypto/rc4 crypto/rsa crypto/sha1
    crypto/sha256 crypto/sha512 crypto/subtle crypto/tls crypto/x509
    crypto/x509/pkix database/sql database/sql/driver debug/buildinfo
    debug/dwarf debug/elf debug/gosym debug/macho debug/pe debug/plan9obj
    embed encoding encoding/ascii85 encoding/asn1 encoding/base32
    encoding/base64 encoding/binary encoding/csv encoding/gob encoding/hex
    encoding/json encoding/pem encoding/xml errors expvar flag fmt go/ast
    go/build go/build/constraint go/constant go/doc go/doc/comment go/format
    go/importer go/parser go/printer go/scanner go/token go/types hash
    hash/adler32 hash/crc32 hash/crc64 hash/fnv hash/maphash html
    html/template image image/color image/color/palette image/draw image/gif
    image/jpeg image/png index/suffixarray io io/fs io/ioutil iter log
    log/slog log/syslog maps math math/big math/bits math/cmplx math/rand
    math/rand/v2 mime mime/multipart mime/quotedprintable net net/http
    net/http/cgi net/http/cookiejar net/http/fcgi net/http/httptest
    net/http/httptrace net/http/httputil net/http/pprof net/mail net/netip
    net/rpc net/rpc/jsonrpc net/smtp net/textproto net/url os os/exec
    os/signal os/user path path/filepath plugin reflect regexp regexp/syntax
    runtime runtime/cgo runtime/debug runtime/metrics runtime/pprof
    runtime/trace slices sort strconv strings sync sync/atomic syscall
    testing testing/fstest testing/iotest testing/quick text/scanner
    text/tabwriter text/template text/template/parse time unicode
    unicode/utf16 unicode/utf8 unique unsafe
    """.split()
)


def is_standard_package(import_path: str) -> bool:
    return import_path in STANDARD_PACKAGES


def valid_remote_path(import_path: str) -> bool:
    """Return True if ``import_path`` is structurally valid for a remote fetch.

    The first segment must look like a host name with at least one dot and
    must not end in a file extension commonly requested by browsers and
    crawlers (``favicon.ico``). Later segments must be non-empty and must not
    start with ``.`` or ``_`` or be ``testdata``, since the go tool ignores
    those directories.
    """
    for ch in import_path:
        if ch == "\ufffd" or ch < "\x20" or ch == "\x7f":
            return False
        if ch == "\\" or ch.isspace() or ch in _BAD_CHARS:
            return False

    parts = import_path.split("/")
    if not _VALID_HOST.match(parts[0]):
        return False
    if parts[0].endswith(_BAD_TLDS):
        return False

    for part in parts[1:]:
        if not part or part[0] in "._" or part == "testdata":
            return False

    return True
