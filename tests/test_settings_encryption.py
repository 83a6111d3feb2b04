import os
import sys
import unittest
import keyring
import yaml
sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import YamlConfig

class DummyKeyring(keyring.backend.KeyringBackend):
    priority = 1
    def __init__(self):
        self.store = {}
    def get_password(self, service, username):
        return self.store.get((service, username))
    def set_password(self, service, username, password):
        self.store[(service, username)] = password
    def delete_password(self, service, username):
        self.store.pop((service, username), None)

class SettingsEncryptionTest(unittest.TestCase):
    def setUp(self) -> None:
        keyring.set_keyring(DummyKeyring())
        os.environ['ENCRYPT_SETTINGS'] = '1'
        self.path = 'enc_settings.yaml'
        if os.path.exists(self.path):
            os.remove(self.path)

    def tearDown(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
        os.environ.pop('ENCRYPT_SETTINGS', None)

    def test_encrypt_and_load(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({'jwt_secret':'secret', 'port':8080})
        self.assertTrue(os.path.exists(self.path))
        with open(self.path, encoding='utf-8') as f:
            raw = yaml.safe_load(f)
        self.assertEqual(raw['jwt_secret'], YamlConfig.PLACEHOLDER)
        data = cfg.load()
        self.assertEqual(data['jwt_secret'], 'secret')
        self.assertEqual(data['port'], 8080)

    def test_missing_secret_dropped(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({'jwt_secret':'secret'})
        keyring.set_keyring(DummyKeyring())
        self.assertNotIn('jwt_secret', cfg.load())

    def test_placeholder_dropped_without_encryption(self) -> None:
        YamlConfig(self.path).save({'jwt_secret':'secret', 'port':8080})
        os.environ.pop('ENCRYPT_SETTINGS', None)
        data = YamlConfig(self.path).load()
        self.assertNotIn('jwt_secret', data)
        self.assertEqual(data['port'], 8080)

    def test_plain_secret_without_encryption(self) -> None:
        os.environ.pop('ENCRYPT_SETTINGS', None)
        cfg = YamlConfig(self.path)
        cfg.save({'jwt_secret':'secret'})
        self.assertEqual(cfg.load()['jwt_secret'], 'secret')

if __name__ == '__main__':
    unittest.main()
