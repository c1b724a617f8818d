import tempfile
import unittest
from pathlib import Path

from fiesta_bench.domain.task import MultiFile, OpaqueMetadata, SingleFile
from pipeline.corpus import (
    discover_metadata,
    load_tasks,
    resolve_source,
    validate_corpus_root,
)

from fake_analyzer_support import write_fiesta_item


class TestCorpus(unittest.TestCase):
    def test_validate_corpus_root(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            self.assertEqual(Path(td).resolve(), validate_corpus_root(td))
            f = Path(td) / "file.txt"
            f.write_text("x", encoding="utf-8")
            with self.assertRaises(NotADirectoryError):
                validate_corpus_root(f)
            with self.assertRaises(NotADirectoryError):
                validate_corpus_root(Path(td) / "missing")

    def test_resolve_source_variants(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            single = write_fiesta_item(root, "aa01")
            multi = write_fiesta_item(
                root,
                "aa02",
                sources=[("z.sol", "contract Z { }"), ("lib/a.sol", "library A { }")],
            )
            opaque = write_fiesta_item(
                root,
                "aa03",
                sources=[("main.sol", "contract X { }"), ("contract.json", '{"sources": {}}')],
            )
            empty = write_fiesta_item(root, "aa04", sources=[("main.vy", "# vyper")])

            s = resolve_source(single)
            self.assertIsInstance(s, SingleFile)
            self.assertEqual("main.sol", s.filename)

            m = resolve_source(multi)
            self.assertIsInstance(m, MultiFile)
            self.assertEqual(("lib/a.sol", "z.sol"), tuple(n for n, _ in m.files))

            o = resolve_source(opaque)
            self.assertIsInstance(o, OpaqueMetadata)
            self.assertEqual('{"sources": {}}', o.blob)

            self.assertIsNone(resolve_source(empty))

    def test_discover_skips_broken_metadata(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            write_fiesta_item(root, "bb01")
            broken = root / "organized_contracts" / "bb" / "bb02"
            broken.mkdir(parents=True)
            (broken / "metadata.json").write_text("{not json", encoding="utf-8")
            listed = root / "organized_contracts" / "bb" / "bb03"
            listed.mkdir(parents=True)
            (listed / "metadata.json").write_text("[1, 2]", encoding="utf-8")

            with self.assertLogs("pipeline.corpus", level="WARNING"):
                metas = list(discover_metadata(root))
            self.assertEqual(["bb01"], [m.bytecode_hash for m in metas])

    def test_load_tasks_filters_skips_and_caps(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            write_fiesta_item(root, "cc01")
            write_fiesta_item(root, "cc02", compiler_version="v0.7.6+commit.7338295f")
            write_fiesta_item(root, "cc03", compiler_version="vyper:0.3.1")
            write_fiesta_item(root, "cc04", sources=[("main.vy", "# vyper")])
            write_fiesta_item(root, "cc05")
            write_fiesta_item(root, "cc06")
            write_fiesta_item(root, "cc07")

            all_tasks = load_tasks(root)
            self.assertEqual(["cc01", "cc05", "cc06", "cc07"], [t.bytecode_hash for t in all_tasks])
            self.assertTrue(all(t.dir_path.is_absolute() for t in all_tasks))

            skipped = load_tasks(root, skip=1)
            self.assertEqual(["cc05", "cc06", "cc07"], [t.bytecode_hash for t in skipped])

            capped = load_tasks(root, skip=1, max_tasks=2)
            self.assertEqual(["cc05", "cc06"], [t.bytecode_hash for t in capped])

    def test_missing_organized_contracts_yields_nothing(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            self.assertEqual([], load_tasks(Path(td)))


if __name__ == "__main__":
    unittest.main()
