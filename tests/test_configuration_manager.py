"""Test cases for ConfigurationManager loading and lookup."""

import json

import pytest
import yaml

from storehub.config.configuration_manager import ConfigurationManager, resolve_env_vars
from storehub.core.exceptions import ConfigurationNotFoundError, MalformedConfigurationEntryError
from storehub.datastore.database_handle import DatabaseManager
from storehub.datastore.redis_handle import RedisManager


class TestConfigurationManager:
    """Test suite for ConfigurationManager."""

    def test_new_configuration_and_lookup(self):
        manager = ConfigurationManager()
        manager.new_configuration('redis', {'cache': {'address': 'localhost'}})

        assert manager.has_section('redis')
        assert manager.get_section('redis') == {'cache': {'address': 'localhost'}}
        assert manager.get_section('missing') is None
        assert manager.list_sections() == ['redis']

    def test_new_configuration_rejects_non_mapping(self):
        manager = ConfigurationManager()

        with pytest.raises(MalformedConfigurationEntryError):
            manager.new_configuration('redis', ['not', 'a', 'mapping'])

    def test_load_from_dict(self):
        manager = ConfigurationManager()

        names = manager.load_from_dict({'redis': {}, 'databases': {'main': {}}})

        assert names == ['redis', 'databases']
        assert manager.get_section('databases') == {'main': {}}

    def test_load_yaml_file_named_after_stem(self, tmp_path):
        path = tmp_path / 'redis.yaml'
        path.write_text(yaml.safe_dump({'cache': {'address': 'localhost:6379', 'database_index': 1}}))
        manager = ConfigurationManager()

        configuration = manager.load_from_file(str(path))

        assert configuration.name_id == 'redis'
        assert configuration.file_path == str(path)
        assert manager.get_section('redis')['cache']['database_index'] == 1

    def test_load_json_file_with_explicit_name(self, tmp_path):
        path = tmp_path / 'stores.json'
        path.write_text(json.dumps({'main': {'address': 'db:5432'}}))
        manager = ConfigurationManager()

        manager.load_from_file(str(path), name_id='databases')

        assert manager.get_section('databases') == {'main': {'address': 'db:5432'}}

    def test_empty_yaml_file_is_empty_section(self, tmp_path):
        path = tmp_path / 'redis.yml'
        path.write_text('')
        manager = ConfigurationManager()

        manager.load_from_file(str(path))

        assert manager.get_section('redis') == {}

    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / 'redis.json'
        path.write_text('{"cache": ')
        manager = ConfigurationManager()

        with pytest.raises(MalformedConfigurationEntryError):
            manager.load_from_file(str(path))

    def test_missing_file(self, tmp_path):
        manager = ConfigurationManager()

        with pytest.raises(ConfigurationNotFoundError):
            manager.load_from_file(str(tmp_path / 'nope.yaml'))

    def test_unsupported_file_type(self, tmp_path):
        path = tmp_path / 'redis.ini'
        path.write_text('[cache]')
        manager = ConfigurationManager()

        with pytest.raises(ValueError):
            manager.load_from_file(str(path))

    def test_load_from_directory(self, tmp_path):
        (tmp_path / 'redis.yaml').write_text(yaml.safe_dump({'cache': {'address': 'localhost'}}))
        (tmp_path / 'databases.json').write_text(json.dumps({'main': {'address': 'db'}}))
        (tmp_path / 'README.txt').write_text('ignored')
        manager = ConfigurationManager()

        names = manager.load_from_directory(str(tmp_path))

        assert sorted(names) == ['databases', 'redis']
        assert manager.get_section('redis') == {'cache': {'address': 'localhost'}}

    def test_load_from_path_single_file_of_sections(self, tmp_path):
        path = tmp_path / 'storehub.yaml'
        path.write_text(yaml.safe_dump({
            'redis': {'cache': {'address': 'localhost'}},
            'databases': {},
        }))
        manager = ConfigurationManager()

        names = manager.load_from_path(str(path))

        assert sorted(names) == ['databases', 'redis']

    def test_load_from_path_requires_mapping(self, tmp_path):
        path = tmp_path / 'storehub.yaml'
        path.write_text('- just\n- a list\n')

        with pytest.raises(MalformedConfigurationEntryError):
            ConfigurationManager().load_from_path(str(path))

    def test_environment_variables_are_resolved(self, monkeypatch):
        monkeypatch.setenv('REDIS_PASSWORD', 's3cret')
        monkeypatch.delenv('REDIS_USER', raising=False)
        manager = ConfigurationManager()

        manager.new_configuration('redis', {
            'cache': {
                'address': 'localhost',
                'password': '${REDIS_PASSWORD}',
                'user_name': '${REDIS_USER:default}',
            },
        })

        section = manager.get_section('redis')
        assert section['cache']['password'] == 's3cret'
        assert section['cache']['user_name'] == 'default'


def test_resolve_env_vars_leaves_other_values_alone():
    value = {'n': 1, 'flag': True, 'items': ['plain', '$NOT_A_REFERENCE'], 'nested': {'x': None}}

    assert resolve_env_vars(value) == value


def test_substituted_numbers_and_flags_feed_typed_fields(monkeypatch):
    monkeypatch.setenv('REDIS_DB', '3')
    monkeypatch.setenv('CACHE_AT_START', 'true')
    monkeypatch.delenv('CACHE_MUST_CONNECT', raising=False)
    monkeypatch.setenv('PG_MAX', '20')
    monkeypatch.delenv('PG_MIN', raising=False)
    manager = ConfigurationManager()
    manager.new_configuration('redis', {
        'cache': {
            'address': 'localhost:6379',
            'database_index': '${REDIS_DB:0}',
            'is_connect_at_start': '${CACHE_AT_START:false}',
            'must_connected': '${CACHE_MUST_CONNECT:false}',
        },
    })
    manager.new_configuration('databases', {
        'main': {
            'database_type': 'postgres',
            'address': 'db',
            'database_name': 'app',
            'min_connections': '${PG_MIN:2}',
            'max_connections': '${PG_MAX:10}',
        },
    })

    redis = RedisManager(manager)
    redis.load_from_configuration()
    databases = DatabaseManager(manager)
    databases.load_from_configuration()

    cache = redis['cache']
    assert cache.config.database_index == 3
    assert cache.is_connect_at_start is True
    assert cache.must_connected is False
    assert databases['main'].config.min_connections == 2
    assert databases['main'].config.max_connections == 20
