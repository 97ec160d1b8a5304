"""End-to-end tests of the create, update and match workflows."""

import os
import tempfile
import unittest

from game_data import CP932_DATABASE_XML, DATABASE_XML, write_file, write_game
from lcftrans.config import Config
from lcftrans.errors import ConfigError
from lcftrans.po_file import read_po, save_po
from lcftrans.project_model import Catalog, TranslationEntry
from lcftrans.workflow import list_data_files, run


class WorkflowTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.game = os.path.join(self.tmp.name, "game")
        self.out = os.path.join(self.tmp.name, "out")
        os.mkdir(self.game)
        os.mkdir(self.out)
        write_game(self.game)

    def tearDown(self):
        self.tmp.cleanup()

    def run_mode(self, mode, **options):
        options.setdefault("input_dir", self.game)
        options.setdefault("output_dir", self.out)
        return run(Config(mode=mode, **options))

    def read_out(self, name):
        return read_po(os.path.join(self.out, name))

    def snapshot(self):
        files = {}
        for name in os.listdir(self.out):
            with open(os.path.join(self.out, name), encoding="utf-8") as f:
                files[name] = f.read()
        return files


class TestListDataFiles(WorkflowTestCase):

    def test_kinds(self):
        write_file(self.game, "readme.txt", "")
        self.assertEqual(list_data_files(self.game), [
            ("map", "Map0001.emu"), ("map", "Map0002.emu"),
            ("database", "RPG_RT.edb"), ("maptree", "RPG_RT.emt"),
        ])


class TestCreate(WorkflowTestCase):

    def test_catalogs_written(self):
        report = self.run_mode("create")
        self.assertEqual(report.encoding, "utf-8")
        self.assertEqual(sorted(os.listdir(self.out)), [
            "Map0001.lmu.po", "RPG_RT.ldb.battle.po", "RPG_RT.ldb.common.po",
            "RPG_RT.ldb.po", "RPG_RT.lmt.po",
        ])
        self.assertEqual(report.failed, [])

        by_name = {f.name: f for f in report.files}
        self.assertTrue(by_name["Map0002.lmu.po"].skipped)
        self.assertEqual(by_name["Map0001.lmu.po"].terms, 2)
        self.assertEqual(by_name["RPG_RT.ldb.po"].terms, 8)
        self.assertEqual(by_name["RPG_RT.ldb.po"].translated, 0)

        catalog = self.read_out("RPG_RT.ldb.common.po")
        self.assertEqual(catalog.entries[0].original, "Hello\nWorld")
        self.assertEqual(catalog.entries[0].locations,
                         ["RPG_RT.ldb:commonevents/1/0/message"])
        self.assertEqual(catalog.metadata["Content-Type"], "text/plain; charset=UTF-8")

    def test_empty_database_catalogs_still_written(self):
        os.remove(os.path.join(self.game, "RPG_RT.edb"))
        write_file(self.game, "RPG_RT.edb",
                   '<?xml version="1.0"?><LDB><Database><actors></actors></Database></LDB>')
        self.run_mode("create")
        self.assertEqual(len(self.read_out("RPG_RT.ldb.battle.po")), 0)

    def test_broken_file_reported_and_others_written(self):
        write_file(self.game, "Map0003.emu", "<LMU><Map>")
        report = self.run_mode("create")
        self.assertEqual([f.name for f in report.failed], ["Map0003.emu"])
        self.assertIn("RPG_RT.ldb.po", os.listdir(self.out))

    def test_encoding_from_ini(self):
        write_file(self.game, "RPG_RT.ini", "[RPG_RT]\nGameTitle=x\n[EasyRPG]\nEncoding=932\n")
        self.assertEqual(self.run_mode("create").encoding, "cp932")

    def test_game_text_decoded_with_encoding(self):
        write_file(self.game, "RPG_RT.edb", CP932_DATABASE_XML)
        self.run_mode("create", encoding="cp932")
        names = [e.original for e in self.read_out("RPG_RT.ldb.po")]
        self.assertEqual(names[:2], ["薬草", "Hero"])

        report = self.run_mode("create")
        self.assertEqual(report.failed, [])
        names = [e.original for e in self.read_out("RPG_RT.ldb.po")]
        self.assertEqual(names[0], "Hero")
        self.assertNotIn("薬草", names)

    def test_bad_encoding(self):
        with self.assertRaises(ConfigError):
            self.run_mode("create", encoding="klingon")
        self.assertEqual(os.listdir(self.out), [])


class TestUpdate(WorkflowTestCase):

    def setUp(self):
        super().setUp()
        self.run_mode("create")

    def test_translations_kept_and_stale_written(self):
        path = os.path.join(self.out, "RPG_RT.ldb.po")
        saved = read_po(path)
        entries = [e.copy(translation="Alexander") if e.original == "Alex" else e
                   for e in saved]
        entries.append(TranslationEntry(context=("items", "name"), original="Elixir",
                                        translation="Elixier"))
        save_po(Catalog(entries, metadata=saved.metadata), path)

        report = self.run_mode("update")
        updated = self.read_out("RPG_RT.ldb.po")
        self.assertEqual(updated.get(("actors", "name"), "Alex").translation, "Alexander")
        self.assertIsNone(updated.get(("items", "name"), "Elixir"))

        stale = self.read_out("RPG_RT.ldb.stale.po")
        self.assertEqual([(e.original, e.translation) for e in stale],
                         [("Elixir", "Elixier")])
        by_name = {f.name: f for f in report.files}
        self.assertEqual(by_name["RPG_RT.ldb.po"].stale, 1)
        self.assertEqual(by_name["RPG_RT.ldb.po"].translated, 1)
        self.assertNotIn("RPG_RT.ldb.common.stale.po", os.listdir(self.out))

    def test_existing_name_matched_ignoring_case(self):
        os.rename(os.path.join(self.out, "Map0001.lmu.po"),
                  os.path.join(self.out, "map0001.LMU.po"))
        report = self.run_mode("update")
        names = os.listdir(self.out)
        self.assertIn("map0001.LMU.po", names)
        self.assertNotIn("Map0001.lmu.po", names)
        self.assertIn("map0001.LMU.po", [f.name for f in report.files])

    def test_new_catalog_created(self):
        os.remove(os.path.join(self.out, "RPG_RT.lmt.po"))
        self.run_mode("update")
        self.assertEqual(len(self.read_out("RPG_RT.lmt.po")), 2)

    def test_catalog_not_utf8_reported_and_others_written(self):
        path = os.path.join(self.out, "RPG_RT.ldb.po")
        bad = b'msgctxt "actors.name"\nmsgid "Alex"\nmsgstr "Al\xe9x"\n'
        with open(path, "wb") as f:
            f.write(bad)
        os.remove(os.path.join(self.out, "RPG_RT.lmt.po"))

        report = self.run_mode("update")
        self.assertEqual([f.name for f in report.failed], ["RPG_RT.ldb.po"])
        self.assertIn("not UTF-8", report.failed[0].error)
        with open(path, "rb") as f:
            self.assertEqual(f.read(), bad)
        self.assertEqual(len(self.read_out("RPG_RT.lmt.po")), 2)
        self.assertEqual(len(self.read_out("RPG_RT.ldb.common.po")), 4)

    def test_unchanged_game_round_trips(self):
        before = self.snapshot()
        self.run_mode("update")
        after = self.snapshot()
        self.assertEqual(before, after)


class TestMatch(WorkflowTestCase):

    def setUp(self):
        super().setUp()
        # match_dir holds the catalogs of a release with hardcoded translation
        self.source = os.path.join(self.tmp.name, "translated")
        os.mkdir(self.source)
        save_po(Catalog([
            TranslationEntry(context=("actors", "name"), original="Alex"),
            TranslationEntry(context=("terms", "attack"), original="Attack", translation="Angriff"),
            TranslationEntry(context=("skills", "name"), original="Fire Storm!", translation="Feuersturm!"),
        ]), os.path.join(self.source, "rpg_rt.ldb.po"))
        save_po(Catalog([TranslationEntry(original="ignored")]),
                os.path.join(self.source, "RPG_RT.ldb.stale.po"))
        save_po(Catalog([TranslationEntry(original="no counterpart")]),
                os.path.join(self.source, "Map0099.lmu.po"))
        save_po(Catalog([
            TranslationEntry(context=("actors", "name"), original="Alex"),
            TranslationEntry(context=("terms", "attack"), original="Attack"),
            TranslationEntry(context=("skills", "name"), original="Fire Storm"),
            TranslationEntry(context=("items", "name"), original="Potion"),
        ]), os.path.join(self.game, "RPG_RT.ldb.po"))

    def test_match(self):
        report = self.run_mode("match", match_dir=self.source)
        self.assertEqual([f.name for f in report.files], ["RPG_RT.ldb.po"])
        f = report.files[0]
        self.assertEqual((f.matched, f.fuzzy, f.unmatched), (2, 1, 1))

        result = self.read_out("RPG_RT.ldb.po")
        self.assertEqual(result.get(("actors", "name"), "Alex").translation, "Alex")
        self.assertEqual(result.get(("terms", "attack"), "Attack").translation, "Angriff")
        fire = result.get(("skills", "name"), "Fire Storm")
        self.assertEqual(fire.translation, "Feuersturm!")
        self.assertTrue(fire.fuzzy)

        unmatched = self.read_out("RPG_RT.ldb.unmatched.po")
        self.assertEqual([e.original for e in unmatched], ["Potion"])
        self.assertEqual(sorted(os.listdir(self.out)),
                         ["RPG_RT.ldb.po", "RPG_RT.ldb.unmatched.po"])

    def test_catalog_not_utf8_reported_and_others_matched(self):
        with open(os.path.join(self.source, "RPG_RT.lmt.po"), "wb") as f:
            f.write(b'msgctxt "maps.name"\nmsgid "Town"\nmsgstr "Stadt \xfc"\n')
        save_po(Catalog([TranslationEntry(context=("maps", "name"), original="Town")]),
                os.path.join(self.game, "RPG_RT.lmt.po"))

        report = self.run_mode("match", match_dir=self.source)
        self.assertEqual(sorted(f.name for f in report.files), ["RPG_RT.ldb.po", "RPG_RT.lmt.po"])
        self.assertEqual([f.name for f in report.failed], ["RPG_RT.lmt.po"])
        self.assertEqual(self.read_out("RPG_RT.ldb.po").get(("terms", "attack"), "Attack").translation,
                         "Angriff")
        self.assertNotIn("RPG_RT.lmt.po", os.listdir(self.out))

    def test_output_must_differ_from_match_dir(self):
        with self.assertRaises(ConfigError):
            self.run_mode("match", match_dir=self.source, output_dir=self.source)

    def test_database_xml_untouched(self):
        self.run_mode("match", match_dir=self.source)
        with open(os.path.join(self.game, "RPG_RT.edb"), encoding="utf-8") as f:
            self.assertEqual(f.read(), DATABASE_XML)


if __name__ == "__main__":
    unittest.main()
