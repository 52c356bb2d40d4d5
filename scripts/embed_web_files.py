#!/usr/bin/env python3

# Embed web files as const uint8_t arrays in a single C/C++ header.
# Run from the directory holding the assets, e.g.:
#   embed_web_files.py -e gzip -f .html .css .js -progmem -uc -o web_files.h
import gzip
import logging
import os
import re
import sys
import time
from typing import List, NamedTuple, Tuple

DEFAULT_OUTPUT_FILE_NAME = 'webFiles.h'
ENCODINGS = ('none', 'gzip')
BANNER = '//This file was generated with embed_web_files. Do not change.'

CASE_UNIFYING_RE = re.compile(r'[-.]')
CASE_UNIFIER = '_'
C_IDENTIFIER_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

USAGE = """Usage: embed_web_files.py [options]
  -f <ext>...        only embed files whose path ends with <ext> (repeatable)
  -e none|gzip       encoding applied to file contents (default: none)
  -o <path>          output header (default: webFiles.h)
  -progmem, -p       add the PROGMEM qualifier
  -r                 embed every file, including the output header
  -noPragma          omit '#pragma once'
  -noBanner          omit the generated-file comment
  -uc                replace '-' and '.' in names with '_'"""


class OptionError(Exception):
    """Bad command line. ``token`` is the argument that was rejected."""

    def __init__(self, message, token):
        super().__init__(f'{message}: {token}')
        self.token = token


class Config(NamedTuple):
    encoding: str = 'none'
    extensions: Tuple[str, ...] = ()
    output_file_name: str = DEFAULT_OUTPUT_FILE_NAME
    use_progmem: bool = False
    allow_recursive_processing: bool = False
    use_pragma_once: bool = True
    unify_case: bool = False
    use_banner: bool = True


class CollectedFile(NamedTuple):
    name: str
    data: bytes


# Flags take no value: option -> (Config field, value)
FLAG_OPTIONS = {
    '-progmem': ('use_progmem', True),
    '-p': ('use_progmem', True),
    '-r': ('allow_recursive_processing', True),
    '-noPragma': ('use_pragma_once', False),
    '-noBanner': ('use_banner', False),
    '-uc': ('unify_case', True),
}
VALUE_OPTIONS = ('-f', '-e', '-o')


def parse_args(argv) -> Config:
    """Build a Config from command line tokens.

    Non-dash tokens are values for the most recent option. ``-f`` keeps
    collecting values until the next option, ``-e`` and ``-o`` take exactly
    one. Raises OptionError naming the offending token.
    """
    settings = {}
    extensions = []
    current_option = ''
    for arg in argv:
        if arg.startswith('-'):
            current_option = arg
            if arg in FLAG_OPTIONS:
                field, value = FLAG_OPTIONS[arg]
                settings[field] = value
            elif arg not in VALUE_OPTIONS:
                raise OptionError('Unknown option', arg)
            continue

        if current_option == '-f':
            extensions.append(arg)
        elif current_option == '-e':
            encoding = arg.lower()
            if encoding not in ENCODINGS:
                raise OptionError('Unknown encoding', arg)
            settings['encoding'] = encoding
            current_option = ''
        elif current_option == '-o':
            settings['output_file_name'] = arg
            current_option = ''
        else:
            raise OptionError('Unknown parameter', arg)
    return Config(extensions=tuple(extensions), **settings)


def file_matches(path, config: Config) -> bool:
    # Recursive mode skips every check, the output header included
    if config.allow_recursive_processing:
        return True
    if os.path.basename(path) == config.output_file_name:
        return False
    # Plain suffix match on the whole path, not an extension comparison
    return not config.extensions or any(path.endswith(ext) for ext in config.extensions)


def raise_walk_error(error):
    raise error


def iter_files(config: Config, root):
    """Yield paths under root accepted by the config, in sorted walk order.

    A directory that cannot be listed raises OSError.
    """
    for dirpath, dirnames, filenames in os.walk(root, onerror=raise_walk_error):
        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.join(dirpath, filename)
            if file_matches(path, config):
                logging.info(f'Found file: {path}')
                yield path


def encode_bytes(data: bytes, encoding: str) -> bytes:
    if encoding == 'none':
        return data
    if encoding == 'gzip':
        # mtime=0 keeps regenerated headers identical
        return gzip.compress(data, compresslevel=9, mtime=0)
    raise ValueError(f'Unsupported encoding: {encoding}')


def collect_files(config: Config, root) -> Tuple[List[CollectedFile], int]:
    """Read and encode every matching file under root.

    Returns the collected files and the total number of bytes read.
    """
    files = []
    original_byte_count = 0
    for path in iter_files(config, root):
        with open(path, 'rb') as f:
            data = f.read()
        original_byte_count += len(data)
        if config.encoding == 'gzip':
            name = os.path.relpath(path, root)
        else:
            name = os.path.basename(path)
        files.append(CollectedFile(name, encode_bytes(data, config.encoding)))
    return files, original_byte_count


def dump_bytes(data: bytes) -> str:
    return ','.join(f'0x{b:02x}' for b in data)


def unify_identifier(name: str) -> str:
    return CASE_UNIFYING_RE.sub(CASE_UNIFIER, name)


def make_identifier(name, unify_case=False) -> str:
    """Array name for a file: base name without extension, '_', extension.

    Only '-' and '.' are rewritten (and only with unify_case); anything else
    that is not legal in a C identifier is left alone.
    """
    base = os.path.basename(name)
    stem, dot, ext = base.rpartition('.')
    if not dot:
        stem = ext
        ext = ''
    if unify_case:
        stem = unify_identifier(stem)
    if not ext:
        return stem
    return f'{stem}_{ext}'


def is_valid_identifier(identifier: str) -> bool:
    return C_IDENTIFIER_RE.match(identifier) is not None


def format_declaration(identifier, data: bytes, use_progmem=False) -> str:
    progmem = 'PROGMEM ' if use_progmem else ''
    return f'const uint8_t {identifier}[] {progmem}= {{ {dump_bytes(data)} }};'


def generate_lines(files, config: Config) -> List[str]:
    lines = []
    if config.use_pragma_once:
        lines += ['#pragma once', '']
    if config.use_banner:
        lines += [BANNER, '']
    for file in files:
        identifier = make_identifier(file.name, config.unify_case)
        if not is_valid_identifier(identifier):
            logging.warning(f'"{identifier}" (from {file.name}) is not a valid C identifier')
        lines += [format_declaration(identifier, file.data, config.use_progmem), '']
    return lines


def write_header(path, lines):
    text = ''.join(line + '\n' for line in lines)
    # Undecodable file name bytes go back out unchanged
    with open(path, 'w', encoding='utf-8', errors='surrogateescape') as out:
        out.write(text)


def format_summary(original_byte_count, encoded_byte_count, output_file_name) -> str:
    counts = f'{encoded_byte_count}/{original_byte_count}'
    if original_byte_count:
        ratio = round(encoded_byte_count / original_byte_count * 100, 2)
        counts += f' ({ratio}%)'
    return f'Writing {counts} bytes to "{output_file_name}"...'


def run(config: Config, root=None) -> List[str]:
    """Embed every matching file under root (default: cwd) into the output header."""
    start = time.perf_counter()
    if root is None:
        root = os.getcwd()

    files, original_byte_count = collect_files(config, root)
    encoded_byte_count = sum(len(file.data) for file in files)
    logging.info(format_summary(original_byte_count, encoded_byte_count, config.output_file_name))

    lines = generate_lines(files, config)
    write_header(config.output_file_name, lines)
    logging.info(f'Finished in {time.perf_counter() - start:.3f} seconds')
    return lines


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format='[embed_web_files] %(message)s')
    if argv is None:
        argv = sys.argv[1:]
    try:
        config = parse_args(argv)
    except OptionError as e:
        logging.error(e)
        print(USAGE, file=sys.stderr)
        return 1
    try:
        run(config)
    except OSError as e:
        logging.error(e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
