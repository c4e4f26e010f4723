import tempfile
import unittest
from pathlib import Path

from hal_sync.runtime_config import load_runtime_config


def _load(text: str):
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "runtime.toml"
        path.write_text(text, encoding="utf-8")
        return load_runtime_config(path)


class RuntimeConfigTests(unittest.TestCase):
    def test_missing_file_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cfg = load_runtime_config(Path(tmp) / "missing.toml")
        self.assertEqual(cfg.matching.confidence_threshold, 0.8)
        self.assertEqual(cfg.matching.workers, 1)
        self.assertEqual(cfg.local.publications_path, "content/publication")
        self.assertIsNone(cfg.hal.author_id)

    def test_reads_sections(self) -> None:
        cfg = _load(
            "[hal]\nauthor_id = \"remy-chaput\"\nrows = 200\n"
            "[local]\npublications_path = \"site/content/publication\"\n"
            "[matching]\nconfidence_threshold = 0.65\nworkers = 4\n"
        )
        self.assertEqual(cfg.hal.author_id, "remy-chaput")
        self.assertEqual(cfg.hal.rows, 200)
        self.assertEqual(cfg.local.publications_path, "site/content/publication")
        self.assertEqual(cfg.matching.confidence_threshold, 0.65)
        self.assertEqual(cfg.matching.workers, 4)

    def test_invalid_values_fall_back(self) -> None:
        cfg = _load("[hal]\ntimeout_secs = -5\napi_url = \"  \"\n[matching]\nconfidence_threshold = 1.5\nworkers = \"many\"\n")
        self.assertEqual(cfg.hal.timeout_secs, 30)
        self.assertEqual(cfg.hal.api_url, "https://api.archives-ouvertes.fr/search/")
        self.assertEqual(cfg.matching.confidence_threshold, 0.8)
        self.assertEqual(cfg.matching.workers, 1)

    def test_parse_error_uses_defaults(self) -> None:
        cfg = _load("[matching\n")
        self.assertEqual(cfg.matching.confidence_threshold, 0.8)


if __name__ == "__main__":
    unittest.main()
