"""Packaging constants and the per-language source rule table."""

METADATA_PREFIX = "META-INF"
METADATA_EXTENSIONS = (".json",)
SOURCE_PREFIX = "src"

TAR_BLOCK_SIZE = 512
TAR_END_BLOCKS = 2
ENTRY_MODE = 0o644
# largest size the 11-digit octal ustar size field can hold
USTAR_MAX_SIZE = 8 ** 11 - 1
ZERO_TIME = 0

# zlib's own default level (Z_DEFAULT_COMPRESSION resolves to 6)
DEFAULT_COMPRESSLEVEL = 6

CONFIG_ENV = "CCPACK_CONFIG"
GOPATH_ENV = "GOPATH"

LANGUAGE_GOLANG = "golang"
LANGUAGE_NODE = "node"
LANGUAGE_JAVA = "java"

LANGUAGE_RULES = {
    LANGUAGE_GOLANG: {
        "keep": (".c", ".h", ".s", ".go", ".yaml", ".json"),
        "excluded_dirs": (),
    },
    LANGUAGE_NODE: {
        "keep": (".js", ".json", ".ts", ".mjs", ".cjs", ".proto", ".yaml", ".yml"),
        "excluded_dirs": ("node_modules",),
    },
    LANGUAGE_JAVA: {
        "keep": (".java", ".xml", ".gradle", ".kts", ".properties"),
        "excluded_dirs": ("target", "build", ".gradle"),
    },
}

SUPPORTED_LANGUAGES = tuple(sorted(LANGUAGE_RULES))
