import unittest
from pathlib import Path

from fiesta_bench.domain.task import (
    ContractTask,
    FiestaMetadata,
    MultiFile,
    OpaqueMetadata,
    SingleFile,
    TargetNotFoundError,
)


def _task(source, name: str = "Vault") -> ContractTask:
    return ContractTask(
        bytecode_hash="ab" * 32,
        contract_name=name,
        compiler_version="v0.8.19+commit.7dd6d404",
        dir_path=Path("/corpus/organized_contracts/ab/abab"),
        source=source,
    )


class TestSourceBundles(unittest.TestCase):
    def test_kind_labels(self) -> None:
        self.assertEqual("SingleFile", _task(SingleFile("main.sol", "")).source_kind)
        self.assertEqual("MultipleFiles", _task(MultiFile((("a.sol", ""),))).source_kind)
        self.assertEqual("JSON", _task(OpaqueMetadata("contract.json", "{}")).source_kind)

    def test_multi_file_members_are_sorted_by_filename(self) -> None:
        bundle = MultiFile((("b.sol", "B"), ("a.sol", "A"), ("c.sol", "C")))
        self.assertEqual(("a.sol", "b.sol", "c.sol"), tuple(name for name, _ in bundle.files))
        self.assertEqual(bundle, MultiFile((("c.sol", "C"), ("a.sol", "A"), ("b.sol", "B"))))

    def test_single_and_json_targets(self) -> None:
        base = Path("/corpus/organized_contracts/ab/abab")
        self.assertEqual(base / "main.sol", _task(SingleFile("main.sol", "")).target_path())
        self.assertEqual(base / "contract.json", _task(OpaqueMetadata("contract.json", "{}")).target_path())

    def test_multi_file_target_is_the_declaring_member(self) -> None:
        bundle = MultiFile(
            (
                ("IERC20.sol", "interface IERC20 { }"),
                ("VaultBase.sol", "abstract contract VaultBase { }"),
                ("Vault.sol", "import './VaultBase.sol';\ncontract Vault is VaultBase { }"),
            )
        )
        target = _task(bundle).target_path()
        self.assertEqual("Vault.sol", target.name)

    def test_multi_file_without_declaration_is_an_error(self) -> None:
        bundle = MultiFile((("a.sol", "contract VaultBase { }"), ("b.sol", "library Vault { }")))
        with self.assertRaises(TargetNotFoundError):
            _task(bundle).target_path()


class TestFiestaMetadata(unittest.TestCase):
    def test_from_dict(self) -> None:
        meta = FiestaMetadata.from_dict(
            {
                "ContractName": "Vyper_contract",
                "CompilerVersion": "vyper:0.3.1",
                "Runs": 0,
                "OptimizationUsed": False,
                "BytecodeHash": "832117d7cd8eb3c6a7677a71fd59bd258faf57c4434f57151d51950060922abd",
            },
            dir_path=Path("/tmp/x"),
        )
        self.assertEqual("Vyper_contract", meta.contract_name)
        self.assertFalse(meta.optimization_used)
        self.assertFalse(meta.compiler_is_supported())

    def test_compiler_support(self) -> None:
        def meta(version: str) -> FiestaMetadata:
            return FiestaMetadata("C", version, 200, True, "h", Path("/tmp"))

        self.assertTrue(meta("v0.8.17+commit.8df45f5f").compiler_is_supported())
        self.assertFalse(meta("v0.7.6+commit.7338295f").compiler_is_supported())
        self.assertFalse(meta("v0.8.0-vyper").compiler_is_supported())

    def test_missing_required_field_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            FiestaMetadata.from_dict({"ContractName": "C", "CompilerVersion": "v0.8.1"}, dir_path=Path("/tmp"))

    def test_hash_must_be_hex(self) -> None:
        base = {"ContractName": "C", "CompilerVersion": "v0.8.1"}
        for bad in ("../../etc/passwd", "ab/cd", "", "zz"):
            with self.assertRaises(ValueError, msg=bad):
                FiestaMetadata.from_dict({**base, "BytecodeHash": bad}, dir_path=Path("/tmp"))
        meta = FiestaMetadata.from_dict({**base, "BytecodeHash": "0xABCdef01"}, dir_path=Path("/tmp"))
        self.assertEqual("0xABCdef01", meta.bytecode_hash)


if __name__ == "__main__":
    unittest.main()
