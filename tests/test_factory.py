# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for PreferencesFactory, settings and the diagnostic dump."""

import logging
from pathlib import Path

import pytest
import structlog
from structlog.testing import capture_logs

from prefstore import (
    InvalidFormatError,
    Partition,
    PreferenceNode,
    PreferencesFactory,
    PreferencesIOError,
    PrefStoreSettings,
    default_factory,
    format_preferences,
    system_root,
    user_root,
)

RESOURCES = Path(__file__).parent / 'resources'
TEST_PREF_VALUES = RESOURCES / 'test-pref-values.xml'
TREP_PROD = '/com/reuters/rfa/AddicticksNamespace/Connections/TREPProd'


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for var in ('PREF2GO_XML_FILE', 'PREF2GO_PRINT_PREF', 'PREF2GO_LOG_LEVEL', 'PREF2GO_LOG_JSON'):
        monkeypatch.delenv(var, raising=False)
    default_factory.cache_clear()
    yield
    default_factory.cache_clear()


class TestPrefStoreSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        """Test settings without environment."""
        settings = PrefStoreSettings()
        assert settings.xml_file is None
        assert settings.print_pref is False
        assert settings.log_level == 'INFO'
        assert settings.log_json is False

    def test_from_environment(self, monkeypatch):
        """Test PREF2GO_* variables are read."""
        monkeypatch.setenv('PREF2GO_XML_FILE', str(TEST_PREF_VALUES))
        monkeypatch.setenv('PREF2GO_PRINT_PREF', 'true')
        monkeypatch.setenv('PREF2GO_LOG_LEVEL', 'debug')
        settings = PrefStoreSettings()
        assert settings.xml_file == TEST_PREF_VALUES
        assert settings.print_pref is True
        assert settings.log_level == 'debug'

    def test_setup_logging(self, logging_calls):
        """Test setup_logging forwards level and renderer choice."""
        PrefStoreSettings(log_level='WARNING', log_json=True).setup_logging()
        assert logging_calls == [{'level': 'WARNING', 'json_logs': True}]


class TestPreferencesFactory:
    """Tests for factory construction and loading."""

    def test_roots_without_xml_file(self):
        """Test a factory without a document has two empty roots."""
        factory = PreferencesFactory(PrefStoreSettings())
        assert factory.user_root().partition is Partition.USER
        assert factory.system_root().partition is Partition.SYSTEM
        assert factory.user_root() is not factory.system_root()
        assert factory.user_root().keys() == []
        assert factory.user_root().children_names() == []

    def test_configures_logging_from_settings(self, logging_calls):
        """Test the factory applies the configured log level."""
        PreferencesFactory(PrefStoreSettings(log_level='DEBUG'))
        assert logging_calls == [{'level': 'DEBUG', 'json_logs': False}]

    def test_configures_logging_from_environment(self, monkeypatch, logging_calls):
        """Test PREF2GO_LOG_LEVEL and PREF2GO_LOG_JSON reach the logging bootstrap."""
        monkeypatch.setenv('PREF2GO_LOG_LEVEL', 'warning')
        monkeypatch.setenv('PREF2GO_LOG_JSON', '1')
        PreferencesFactory()
        assert logging_calls == [{'level': 'warning', 'json_logs': True}]

    def test_loads_xml_file(self):
        """Test the configured document is imported into the user tree."""
        factory = PreferencesFactory(PrefStoreSettings(xml_file=TEST_PREF_VALUES))
        root = factory.user_root()
        assert root.node_exists(TREP_PROD) is True
        node = root.node(TREP_PROD)
        assert node.get('serverList') is not None
        assert node.get('portNumber') == '14002'
        assert factory.system_root().children_names() == []

    def test_loads_xml_file_from_environment(self, monkeypatch):
        """Test PREF2GO_XML_FILE drives loading."""
        monkeypatch.setenv('PREF2GO_XML_FILE', str(TEST_PREF_VALUES))
        factory = PreferencesFactory()
        assert factory.user_root().node_exists(TREP_PROD) is True

    def test_logs_successful_load(self):
        """Test a successful load is logged at info."""
        with capture_logs() as logs:
            PreferencesFactory(PrefStoreSettings(xml_file=TEST_PREF_VALUES))
        loaded = [log for log in logs if log['event'] == 'preferences_loaded']
        assert len(loaded) == 1
        assert loaded[0]['log_level'] == 'info'
        assert loaded[0]['xml_file'] == str(TEST_PREF_VALUES)

    def test_print_pref_logs_dump(self):
        """Test print_pref logs the loaded values."""
        with capture_logs() as logs:
            PreferencesFactory(PrefStoreSettings(xml_file=TEST_PREF_VALUES, print_pref=True))
        dumps = [log for log in logs if log['event'] == 'preference_values']
        assert len(dumps) == 1
        assert 'Preferences type : USER' in dumps[0]['dump']
        assert f"{TREP_PROD}/portNumber : 14002" in dumps[0]['dump']

    def test_no_dump_without_print_pref(self):
        """Test values are not logged by default."""
        with capture_logs() as logs:
            PreferencesFactory(PrefStoreSettings(xml_file=TEST_PREF_VALUES))
        assert not [log for log in logs if log['event'] == 'preference_values']

    def test_missing_file(self, tmp_path):
        """Test a missing document raises PreferencesIOError."""
        missing = tmp_path / 'missing.xml'
        with pytest.raises(PreferencesIOError, match="missing.xml"):
            PreferencesFactory(PrefStoreSettings(xml_file=missing))

    def test_invalid_file(self, tmp_path):
        """Test an invalid document propagates InvalidFormatError."""
        bad = tmp_path / 'bad.xml'
        bad.write_text('<preferences>', encoding='utf-8')
        with pytest.raises(InvalidFormatError):
            PreferencesFactory(PrefStoreSettings(xml_file=bad))

    def test_format_trees_skips_empty_system_tree(self):
        """Test the combined dump omits an empty system tree."""
        factory = PreferencesFactory(PrefStoreSettings(xml_file=TEST_PREF_VALUES))
        dump = factory.format_trees()
        assert dump.startswith('    Preferences type : USER\n')
        assert 'SYSTEM' not in dump

    def test_format_trees_both(self):
        """Test the combined dump lists system before user."""
        factory = PreferencesFactory(PrefStoreSettings())
        factory.system_root().put('s', '1')
        factory.user_root().put('u', '2')
        dump = factory.format_trees()
        assert dump.index('SYSTEM') < dump.index('USER')


class TestDefaultFactory:
    """Tests for the process-wide factory."""

    def test_default_factory_is_cached(self):
        """Test default_factory builds a single factory."""
        assert default_factory() is default_factory()

    def test_root_helpers(self, monkeypatch):
        """Test user_root and system_root use the default factory."""
        monkeypatch.setenv('PREF2GO_XML_FILE', str(TEST_PREF_VALUES))
        assert user_root() is default_factory().user_root()
        assert system_root() is default_factory().system_root()
        assert user_root().node(TREP_PROD).get('serverList') is not None


class TestFormatPreferences:
    """Tests for the diagnostic dump."""

    def test_empty_root(self):
        """Test an empty tree has no dump."""
        assert format_preferences(PreferenceNode.create_root()) is None

    def test_nested_entries(self):
        """Test entries are printed with their full path."""
        root = PreferenceNode.create_root(Partition.USER)
        root.node('com/acme').put('color', 'red')
        root.node('com/empty')
        assert format_preferences(root) == (
            '    Preferences type : USER\n'
            '        /com/acme/color : red\n'
            '        /com/empty\n'
        )

    def test_root_entries(self):
        """Test entries of the root itself."""
        root = PreferenceNode.create_root(Partition.SYSTEM)
        root.put('top', '1')
        assert format_preferences(root) == (
            '    Preferences type : SYSTEM\n'
            '        /top : 1\n'
        )

    def test_deep_tree(self):
        """Test a tree nested past the recursion limit is dumped."""
        root = PreferenceNode.create_root(Partition.USER)
        deep_path = '/' + '/'.join(['n'] * 1500)
        root.node(deep_path).put('k', 'v')
        assert format_preferences(root).endswith(f"{deep_path}/k : v\n")


class TestConfigureLogging:
    """Tests for the logging bootstrap."""

    @pytest.fixture
    def prefstore_logger(self, monkeypatch):
        import prefstore.logging_setup as logging_setup

        stdlib_logger = logging.getLogger(logging_setup.LOGGER_NAME)
        monkeypatch.setattr(logging_setup, '_LOG_CONFIGURED', False)
        monkeypatch.setattr(stdlib_logger, 'handlers', [])
        monkeypatch.setattr(stdlib_logger, 'propagate', True)
        monkeypatch.setattr(stdlib_logger, 'level', logging.NOTSET)
        return stdlib_logger

    def test_configures_once(self, monkeypatch, prefstore_logger):
        """Test structlog is configured on the first call only."""
        import prefstore.logging_setup as logging_setup

        calls = []
        monkeypatch.setattr(
            logging_setup.structlog, 'configure', lambda **kwargs: calls.append(kwargs)
        )

        logging_setup.configure_logging(level='debug', json_logs=True)
        logging_setup.configure_logging(level='info')

        assert len(calls) == 1
        assert isinstance(calls[0]['processors'][-1], structlog.processors.JSONRenderer)
        assert isinstance(calls[0]['logger_factory'], structlog.stdlib.LoggerFactory)
        assert len(prefstore_logger.handlers) == 1
        assert prefstore_logger.level == logging.DEBUG

    def test_root_logger_untouched(self, monkeypatch, prefstore_logger):
        """Test only the prefstore logger is configured."""
        import prefstore.logging_setup as logging_setup

        monkeypatch.setattr(logging_setup.structlog, 'configure', lambda **kwargs: None)
        root_handlers = list(logging.getLogger().handlers)

        logging_setup.configure_logging(level='not-a-level')

        assert logging.getLogger().handlers == root_handlers
        assert prefstore_logger.propagate is False
        assert prefstore_logger.level == logging.INFO
