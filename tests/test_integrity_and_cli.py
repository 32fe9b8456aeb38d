import asyncio
import contextlib
import io
import json
import logging
from pathlib import Path
import tempfile
import unittest

from ddt_DataDrivenManager.core.context import RunContext, Settings
from ddt_DataDrivenManager.core.encryption import DataEncryption
from ddt_DataDrivenManager.core.errors import EncryptionError
from ddt_DataDrivenManager.core.manager import DataDrivenTestManager
from ddt_DataDrivenManager.main import validate_inputs
from ddt_DataDrivenManager.utils.detect import detect_kind, discover_inputs


def _write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class IntegrityTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.manager = DataDrivenTestManager(RunContext(logger=logging.getLogger("tests.ddt")))

    def tearDown(self):
        self._tmp.cleanup()

    async def test_clean_source_has_no_issues(self):
        src = _write_json(self.tmp / "ok.json", [
            {"testType": "smoke", "priority": "high"},
            {"testType": "regression", "priority": "low"},
        ])
        report = await self.manager.validate_data_integrity([src])
        self.assertTrue(report.valid)
        self.assertEqual([], report.issues)

    async def test_empty_source_invalidates(self):
        src = _write_json(self.tmp / "empty.json", [])
        report = await self.manager.validate_data_integrity([src])
        self.assertFalse(report.valid)
        self.assertEqual(["high"], [i.severity for i in report.issues])
        self.assertEqual("Data source is empty", report.issues[0].issue)

    async def test_structure_and_missing_fields_are_not_fatal(self):
        src = _write_json(self.tmp / "mixed.json", [
            {"testType": "smoke", "priority": "high"},
            {"testType": "smoke", "priority": "low", "extra": 1},
            {"testType": "", "priority": "low"},
        ])
        report = await self.manager.validate_data_integrity([src])
        self.assertTrue(report.valid)
        messages = [i.issue for i in report.issues]
        self.assertIn("Inconsistent structure at record 2", messages)
        self.assertIn("Missing required field 'testType' in 1 of 3 records", messages)
        self.assertTrue(all(i.severity == "medium" for i in report.issues))

    async def test_load_failure_recorded_and_processing_continues(self):
        good = _write_json(self.tmp / "good.json", [{"testType": "smoke", "priority": "high"}])
        bad = self.tmp / "missing.csv"
        report = await self.manager.validate_data_integrity([bad, good])
        self.assertFalse(report.valid)
        self.assertEqual(1, len(report.issues))
        self.assertEqual(str(bad), report.issues[0].source)
        self.assertTrue(report.issues[0].issue.startswith("Failed to load data source"))

    async def test_validation_bypasses_cache(self):
        src = _write_json(self.tmp / "ok.json", [{"testType": "smoke", "priority": "high"}])
        await self.manager.validate_data_integrity([src])
        self.assertEqual(0, self.manager.get_cache_stats().test_data_entries)

    async def test_required_fields_from_settings(self):
        manager = DataDrivenTestManager(RunContext(settings=Settings(required_fields=("owner",))))
        src = _write_json(self.tmp / "ok.json", [{"testType": "smoke", "priority": "high"}])
        report = await manager.validate_data_integrity([src])
        self.assertEqual(["Missing required field 'owner' in 1 of 1 records"], [i.issue for i in report.issues])


class EncryptionTests(unittest.TestCase):
    def test_encrypt_decrypt(self):
        enc = DataEncryption(key="k1")
        token = enc.encrypt("p:ss")
        self.assertNotEqual("p:ss", token)
        self.assertEqual("p:ss", enc.decrypt(token))
        self.assertTrue(enc.is_encrypted(token))
        self.assertFalse(enc.is_encrypted("plain text"))

    def test_wrong_key_rejected(self):
        token = DataEncryption(key="k1").encrypt("secret")
        with self.assertRaises(EncryptionError):
            DataEncryption(key="k2").decrypt(token)

    def test_empty_input_rejected(self):
        with self.assertRaises(EncryptionError):
            DataEncryption(key="k").encrypt("")

    def test_mask_and_hash(self):
        self.assertEqual("sec****123", DataEncryption.mask_sensitive_data("secret0123"))
        self.assertEqual("****", DataEncryption.mask_sensitive_data("abcd"))
        self.assertEqual("********", DataEncryption.mask_sensitive_data(None))
        self.assertEqual(64, len(DataEncryption.hash("x")))
        self.assertEqual(11, len(DataEncryption.generate_random_string(11)))


class DetectAndCliTests(unittest.TestCase):
    def test_detect_kind(self):
        self.assertEqual("csv", detect_kind("a/B.CSV"))
        self.assertEqual("excel", detect_kind("b.xlsx"))
        self.assertEqual("excel", detect_kind("b.xls"))
        self.assertEqual("json", detect_kind("c.json"))
        self.assertEqual("unknown", detect_kind("d.txt"))

    def test_discover_and_validate(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "data"
            (root / "nested").mkdir(parents=True)
            _write_json(root / "cases.json", [{"testType": "smoke", "priority": "high"}])
            (root / "nested" / "users.csv").write_text("testType,priority\nsmoke,low\n", encoding="utf-8")
            (root / "readme.txt").write_text("ignore me", encoding="utf-8")
            (root / "~$lock.xlsx").write_text("", encoding="utf-8")

            found = discover_inputs(root)
            self.assertEqual(["csv", "json"], [d.kind for d in found])
            self.assertEqual(1, len(discover_inputs(root, recurse=False)))

            cfg = {"input": {"path": str(root)}, "logging": {"verbose": True, "level": "WARNING"}}
            out = io.StringIO()
            with contextlib.redirect_stdout(out):
                code = asyncio.run(validate_inputs(cfg))
            self.assertEqual(0, code)
            self.assertIn("[validate] PASSED", out.getvalue())

            _write_json(root / "empty.json", [])
            with contextlib.redirect_stdout(io.StringIO()):
                self.assertEqual(2, asyncio.run(validate_inputs(cfg)))

    def test_report_output_is_not_discovered(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _write_json(root / "cases.json", [{"testType": "smoke", "priority": "high"}])
            (root / "reports").mkdir()
            _write_json(root / "reports" / "run.json", {"summary": {"totalTests": 1}})
            (root / ".cache").mkdir()
            _write_json(root / ".cache" / "stale.json", [])
            _write_json(root / "last-run.json", {"summary": {}})

            found = discover_inputs(root, exclude=[root / "last-run.json"])
            self.assertEqual([(root / "cases.json").resolve()], [d.path for d in found])
            self.assertEqual(2, len(discover_inputs(root, skip_dirs=(), exclude=[root / "last-run.json"])))
