import os, sys, pdb, json, logging, tempfile
import unittest as test

import yaml

from hyperaction import config as cfgmod
from hyperaction.exceptions import ConfigurationException

tmpdir = tempfile.TemporaryDirectory(prefix="_test_config.")

def tearDownModule():
    tmpdir.cleanup()

class TestLoad(test.TestCase):

    def setUp(self):
        self.cfg = { "name": "library", "base_ep": "/api",
                     "authentication": { "type": "jwt", "key": "XXXXX" } }

    def test_load_yaml(self):
        cfgfile = os.path.join(tmpdir.name, "app.yml")
        with open(cfgfile, 'w') as fd:
            yaml.safe_dump(self.cfg, fd)
        self.assertEqual(cfgmod.load_from_file(cfgfile), self.cfg)
        self.assertEqual(cfgmod.resolve_configuration(cfgfile), self.cfg)
        self.assertEqual(cfgmod.resolve_configuration("file://"+cfgfile), self.cfg)

    def test_load_json(self):
        cfgfile = os.path.join(tmpdir.name, "app.json")
        with open(cfgfile, 'w') as fd:
            json.dump(self.cfg, fd)
        self.assertEqual(cfgmod.load_from_file(cfgfile), self.cfg)

    def test_load_empty(self):
        cfgfile = os.path.join(tmpdir.name, "empty.yml")
        with open(cfgfile, 'w') as fd:
            pass
        self.assertEqual(cfgmod.load_from_file(cfgfile), {})

    def test_load_errors(self):
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(os.path.join(tmpdir.name, "missing.yml"))

        cfgfile = os.path.join(tmpdir.name, "list.yml")
        with open(cfgfile, 'w') as fd:
            fd.write("- a\n- b\n")
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(cfgfile)

        cfgfile = os.path.join(tmpdir.name, "bad.json")
        with open(cfgfile, 'w') as fd:
            fd.write("{ goob")
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(cfgfile)

        with self.assertRaises(ConfigurationException):
            cfgmod.resolve_configuration("http://example.com/config.yml")

    def test_merge(self):
        defc = { "name": "library", "pagination": { "default_items_per_page": 30 },
                 "authentication": { "type": "jwt", "key": "XXXXX" } }
        over = { "pagination": { "default_items_per_page": 10 },
                 "authentication": { "key": "YYYYY", "raise_on_invalid": True },
                 "base_ep": "/api" }
        out = cfgmod.merge_config(over, defc)
        self.assertEqual(out, { "name": "library", "base_ep": "/api",
                                "pagination": { "default_items_per_page": 10 },
                                "authentication": { "type": "jwt", "key": "YYYYY",
                                                    "raise_on_invalid": True } })
        self.assertEqual(defc["authentication"]["key"], "XXXXX")
        self.assertEqual(cfgmod.merge_config(None, defc), defc)

class TestConfigureLog(test.TestCase):

    def tearDown(self):
        if cfgmod._log_handler:
            logging.getLogger().removeHandler(cfgmod._log_handler)
            cfgmod._log_handler.close()
            cfgmod._log_handler = None
        if cfgmod._stderr_handler:
            logging.getLogger().removeHandler(cfgmod._stderr_handler)
            cfgmod._stderr_handler = None

    def test_configure_log(self):
        log = cfgmod.configure_log(config={ "logdir": tmpdir.name, "logfile": "test.log",
                                            "loglevel": "DEBUG" })
        self.assertEqual(log.name, "hyperaction")
        logfile = os.path.join(tmpdir.name, "test.log")
        self.assertEqual(cfgmod.global_logfile, logfile)
        self.assertEqual(cfgmod.global_logdir, tmpdir.name)
        log.getChild("test").debug("hello, log")
        cfgmod._log_handler.flush()
        with open(logfile) as fd:
            content = fd.read()
        self.assertIn("hello, log", content)
        self.assertIn("DEBUG", content)

    def test_stderr_replaced(self):
        root = logging.getLogger()
        cfg = { "logdir": tmpdir.name, "logfile": "test.log" }
        cfgmod.configure_log(config=cfg, addstderr=True)
        first = cfgmod._stderr_handler
        self.assertIn(first, root.handlers)

        cfgmod.configure_log(config=cfg, addstderr=True)
        self.assertNotIn(first, root.handlers)
        self.assertIn(cfgmod._stderr_handler, root.handlers)
        self.assertEqual(len([h for h in root.handlers if h is cfgmod._log_handler]), 1)

        second = cfgmod._stderr_handler
        cfgmod.configure_log(config=cfg)
        self.assertIsNone(cfgmod._stderr_handler)
        self.assertNotIn(second, root.handlers)

    def test_bad_level(self):
        with self.assertRaises(ConfigurationException):
            cfgmod.configure_log(config={ "logdir": tmpdir.name, "loglevel": "LOUD" })


if __name__ == '__main__':
    test.main()
