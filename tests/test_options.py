import pytest

from embed_web_files import Config, OptionError, parse_args


def test_defaults():
    config = parse_args([])
    assert config == Config()
    assert config.encoding == 'none'
    assert config.extensions == ()
    assert config.output_file_name == 'webFiles.h'
    assert config.use_pragma_once
    assert not config.use_progmem
    assert not config.allow_recursive_processing
    assert not config.unify_case
    assert config.use_banner


def test_flags_and_values():
    config = parse_args(['-p', '-r', '-e', 'gzip', '-o', 'out.h'])
    assert config.use_progmem
    assert config.allow_recursive_processing
    assert config.encoding == 'gzip'
    assert config.output_file_name == 'out.h'


@pytest.mark.parametrize('argv, field, value', [
    (['-progmem'], 'use_progmem', True),
    (['-noPragma'], 'use_pragma_once', False),
    (['-noBanner'], 'use_banner', False),
    (['-uc'], 'unify_case', True),
])
def test_single_flag(argv, field, value):
    assert getattr(parse_args(argv), field) == value


def test_extensions_accumulate_in_order():
    config = parse_args(['-f', '.html', '.css', '-uc', '-f', '.js'])
    assert config.extensions == ('.html', '.css', '.js')
    assert config.unify_case


def test_encoding_is_case_insensitive():
    assert parse_args(['-e', 'GZip']).encoding == 'gzip'
    assert parse_args(['-e', 'NONE']).encoding == 'none'


def test_config_is_immutable():
    config = parse_args(['-p'])
    with pytest.raises(AttributeError):
        config.use_progmem = False


@pytest.mark.parametrize('argv, token, message', [
    (['-x'], '-x', 'Unknown option'),
    (['-progmem', '-zip'], '-zip', 'Unknown option'),
    (['stray'], 'stray', 'Unknown parameter'),
    (['-r', 'stray'], 'stray', 'Unknown parameter'),
    (['-e', 'brotli'], 'brotli', 'Unknown encoding'),
    (['-e', 'gzip', 'none'], 'none', 'Unknown parameter'),
    (['-o', 'a.h', 'b.h'], 'b.h', 'Unknown parameter'),
])
def test_errors_name_offending_token(argv, token, message):
    with pytest.raises(OptionError) as excinfo:
        parse_args(argv)
    assert excinfo.value.token == token
    assert str(excinfo.value) == f'{message}: {token}'
