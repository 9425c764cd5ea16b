import logging

import pytest
import yaml

from filedb_lib.config import StoreConfig, dump_config, load_config


def test_missing_config_file_gives_defaults(tmp_path):
    cfg = load_config(tmp_path / 'nope.yml')
    assert cfg == StoreConfig()
    assert cfg.serializer == 'json' and cfg.fsync is True and cfg.data_dir is None


def test_load_config_reads_values(tmp_path):
    p = tmp_path / 'file-db.yml'
    p.write_text(yaml.safe_dump({
        'data_dir': str(tmp_path / 'db'),
        'serializer': 'yaml',
        'fsync': False,
        'log_level': 'DEBUG',
    }), encoding='utf-8')
    cfg = load_config(p)
    assert cfg.data_dir == str(tmp_path / 'db')
    assert cfg.serializer == 'yaml'
    assert cfg.fsync is False
    assert cfg.log_level == 'DEBUG'


def test_empty_config_file_gives_defaults(tmp_path):
    p = tmp_path / 'file-db.yml'
    p.write_text('', encoding='utf-8')
    assert load_config(p) == StoreConfig()


def test_non_mapping_config_is_rejected(tmp_path):
    p = tmp_path / 'file-db.yml'
    p.write_text('- a\n- b\n', encoding='utf-8')
    with pytest.raises(ValueError):
        load_config(p)


def test_unparsable_config_is_rejected(tmp_path):
    p = tmp_path / 'file-db.yml'
    p.write_text('data_dir: [unclosed\n', encoding='utf-8')
    with pytest.raises(ValueError):
        load_config(p)


def test_unknown_keys_are_ignored_with_warning(tmp_path, caplog):
    p = tmp_path / 'file-db.yml'
    p.write_text('serializer: json\nbogus: 1\n', encoding='utf-8')
    with caplog.at_level(logging.WARNING, logger='filedb_lib.config'):
        cfg = load_config(p)
    assert cfg.serializer == 'json'
    assert 'bogus' in caplog.text


def test_dump_config_roundtrips(tmp_path):
    cfg = StoreConfig(data_dir='/srv/db', serializer='yaml', log_level='INFO')
    p = tmp_path / 'file-db.yml'
    p.write_text(dump_config(cfg), encoding='utf-8')
    assert load_config(p) == cfg
