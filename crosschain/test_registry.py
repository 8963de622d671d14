#!/usr/bin/env python3
"""
Tests for the persisted deployment registry
"""

import json
import os

import pytest

from crosschain.errors import PersistenceError
from crosschain.registry import DeploymentRecord, DeploymentRegistry, utc_timestamp


class TestDeploymentRegistry:
    """Test class for DeploymentRegistry load/upsert/save"""

    def setup_method(self):
        self.ticks = iter(f"2026-10-19T12:00:0{i}.000Z" for i in range(10))

    def registry(self, tmp_path, name='contracts.json'):
        return DeploymentRegistry(str(tmp_path / name), clock=lambda: next(self.ticks))

    def test_load_missing_file_is_empty(self, tmp_path):
        """Test a registry with no persisted state loads as empty"""
        assert self.registry(tmp_path).load() == {}

    def test_upsert_creates_record(self, tmp_path):
        """Test the first write creates a record with label and timestamp"""
        registry = self.registry(tmp_path)
        record = registry.upsert(10002, {'sender_address': '0xA'}, network_label='Sepolia')
        assert record.network_label == 'Sepolia'
        assert record.sender_address == '0xA'
        assert record.receiver_address is None
        assert record.last_deployed_at == '2026-10-19T12:00:00.000Z'

    def test_upsert_merges_fields(self, tmp_path):
        """Test sender then receiver writes yield one record with both fields"""
        registry = self.registry(tmp_path)
        registry.upsert(1001, {'sender_address': '0xA'}, network_label='Chain')
        record = registry.upsert(1001, {'receiver_address': '0xB'})
        assert len(registry.records) == 1
        assert record.sender_address == '0xA'
        assert record.receiver_address == '0xB'
        assert record.network_label == 'Chain'
        assert record.last_deployed_at == '2026-10-19T12:00:01.000Z'

    def test_upsert_rejects_unknown_field(self, tmp_path):
        """Test patch keys are limited to record fields"""
        with pytest.raises(ValueError):
            self.registry(tmp_path).upsert(1, {'owner': '0xA'})

    def test_merge_survives_reload(self, tmp_path):
        """Test a receiver recorded in a later run keeps the earlier sender"""
        first = self.registry(tmp_path)
        first.upsert(14, {'sender_address': '0xA'}, network_label='Celo')
        first.save()

        second = self.registry(tmp_path)
        second.load()
        second.upsert(14, {'receiver_address': '0xB'}, network_label='Celo')
        second.save()

        with open(second.path) as f:
            data = json.load(f)
        assert data == {'14': {
            'networkName': 'Celo',
            'CrossChainSender': '0xA',
            'CrossChainReceiver': '0xB',
            'deployedAt': '2026-10-19T12:00:01.000Z',
        }}

    def test_save_of_untouched_registry_is_identical(self, tmp_path):
        """Test save(load()) reproduces the persisted bytes"""
        registry = self.registry(tmp_path)
        registry.upsert(10002, {'sender_address': '0xA'}, network_label='Sepolia')
        registry.upsert(14, {'receiver_address': '0xB'}, network_label='Celo')
        registry.save()
        with open(registry.path, 'rb') as f:
            before = f.read()

        reloaded = self.registry(tmp_path)
        reloaded.load()
        reloaded.save()
        with open(reloaded.path, 'rb') as f:
            assert f.read() == before

    def test_unknown_record_keys_are_preserved(self, tmp_path):
        """Test keys this tool does not know survive load and save"""
        path = tmp_path / 'contracts.json'
        path.write_text(json.dumps({'5': {'networkName': 'Old', 'deployedAt': 't', 'MessageSender': '0xC'}}))
        registry = DeploymentRegistry(str(path))
        registry.load()
        registry.save()
        assert json.loads(path.read_text())['5']['MessageSender'] == '0xC'

    def test_original_format_file_is_rewritten_unchanged(self, tmp_path):
        """Test save(load()) keeps key order and the missing final newline of an existing file"""
        path = tmp_path / 'contracts.json'
        text = json.dumps({
            '10002': {'networkName': 'Sepolia', 'deployedAt': '2026-01-01T00:00:00.000Z',
                      'CrossChainSender': '0xA'},
            '14': {'networkName': 'Celo', 'CrossChainReceiver': '0xB'},
        }, indent=2)
        path.write_text(text)
        registry = DeploymentRegistry(str(path))
        registry.load()
        registry.save()
        assert path.read_text() == text

    def test_upsert_keeps_loaded_key_order(self, tmp_path):
        """Test keys already in a record stay in place and new ones are appended"""
        path = tmp_path / 'contracts.json'
        path.write_text(json.dumps({'10002': {'networkName': 'Sepolia', 'deployedAt': 't',
                                              'CrossChainSender': '0xA'}}))
        registry = self.registry(tmp_path)
        registry.load()
        registry.upsert(10002, {'receiver_address': '0xB'})
        registry.save()
        record = json.loads(path.read_text())['10002']
        assert list(record) == ['networkName', 'deployedAt', 'CrossChainSender', 'CrossChainReceiver']
        assert record['deployedAt'] == '2026-10-19T12:00:00.000Z'

    def test_record_without_timestamp_gains_no_empty_fields(self, tmp_path):
        """Test absent networkName and deployedAt are not written back as empty strings"""
        path = tmp_path / 'contracts.json'
        path.write_text(json.dumps({'14': {'CrossChainReceiver': '0xB'}}))
        registry = DeploymentRegistry(str(path))
        record = registry.load()[14]
        assert record.network_label is None
        assert record.last_deployed_at is None
        registry.save()
        assert json.loads(path.read_text()) == {'14': {'CrossChainReceiver': '0xB'}}

    def test_save_leaves_no_temp_files(self, tmp_path):
        """Test the temp-file-then-rename write cleans up after itself"""
        registry = self.registry(tmp_path)
        registry.upsert(1, {'sender_address': '0xA'})
        registry.save()
        assert os.listdir(tmp_path) == ['contracts.json']

    def test_save_creates_directory(self, tmp_path):
        """Test saving into a missing deploy-config directory"""
        registry = DeploymentRegistry(str(tmp_path / 'deploy-config' / 'contracts.json'))
        registry.upsert(1, {'receiver_address': '0xB'})
        registry.save()
        assert os.path.exists(registry.path)

    def test_corrupt_file(self, tmp_path):
        """Test unparsable JSON is a persistence error"""
        path = tmp_path / 'contracts.json'
        path.write_text('{"14": ')
        with pytest.raises(PersistenceError):
            DeploymentRegistry(str(path)).load()

    def test_non_object_file(self, tmp_path):
        """Test a top-level list is a persistence error"""
        path = tmp_path / 'contracts.json'
        path.write_text('[]')
        with pytest.raises(PersistenceError):
            DeploymentRegistry(str(path)).load()

    def test_non_numeric_chain_id(self, tmp_path):
        """Test record keys must be chain ids"""
        path = tmp_path / 'contracts.json'
        path.write_text(json.dumps({'sepolia': {'networkName': 'Sepolia', 'deployedAt': 't'}}))
        with pytest.raises(PersistenceError):
            DeploymentRegistry(str(path)).load()

    def test_unwritable_location(self, tmp_path):
        """Test a write failure is a persistence error"""
        blocker = tmp_path / 'file'
        blocker.write_text('')
        registry = DeploymentRegistry(str(blocker / 'contracts.json'))
        registry.upsert(1, {'sender_address': '0xA'})
        with pytest.raises(PersistenceError):
            registry.save()


def test_record_round_trip_omits_missing_roles():
    """Test absent addresses are not serialized"""
    record = DeploymentRecord(network_label='Celo', last_deployed_at='t', receiver_address='0xB')
    assert record.to_dict() == {'networkName': 'Celo', 'CrossChainReceiver': '0xB', 'deployedAt': 't'}
    assert DeploymentRecord.from_dict(record.to_dict()) == record


def test_utc_timestamp_format():
    """Test timestamps are ISO-8601 UTC with a Z suffix"""
    stamp = utc_timestamp()
    assert stamp.endswith('Z')
    assert 'T' in stamp
