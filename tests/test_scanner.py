"""Tests for scanner module."""

import os
import tempfile
from pathlib import Path

import pytest

from scanner.discovery import ALL_EXTENSIONS, IgnoreRules, iter_files
from scanner.markup import (
    get_imported_components,
    get_template_tags,
    get_used_import_sources,
    kebab_to_pascal,
)
from scanner.parser import TSX, TYPESCRIPT, dialect_for_lang, dialect_for_suffix, extract_imports
from scanner.resolver import ModuleResolver, build_alias_table, is_package_import
from scanner.sfc import SfcSplitter, Vue2Splitter, Vue3Splitter, detect_vue_version, get_splitter, iter_blocks


def _write(root: Path, rel: str, content: str = "") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _rel(paths, root: Path):
    return sorted(p.relative_to(root).as_posix() for p in paths)


class TestFileDiscovery:
    """Tests for file enumeration."""

    def test_extension_filter(self):
        """Test that only configured extensions are listed."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "src/App.vue")
            _write(root, "src/main.js")
            _write(root, "src/logo.png")
            _write(root, "README.md")

            files = list(iter_files(root, [".vue", ".js"]))

            assert _rel(files, root) == ["src/App.vue", "src/main.js"]

    def test_all_extensions_sentinel(self):
        """Test that the ALL sentinel lists every file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "src/main.js")
            _write(root, "src/logo.png")

            files = list(iter_files(root, ALL_EXTENSIONS))

            assert _rel(files, root) == ["src/logo.png", "src/main.js"]

    def test_default_ignores(self):
        """Test that build output and dependencies are never listed."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "src/main.js")
            _write(root, "node_modules/vue/index.js")
            _write(root, "dist/app.js")
            _write(root, "packages/web/dist/chunk.js")

            files = list(iter_files(root, [".js"]))

            assert _rel(files, root) == ["src/main.js"]

    def test_glob_ignores(self):
        """Test explicit glob ignore patterns."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, "src/util.js")
            _write(root, "src/util.spec.js")
            _write(root, "src/__tests__/util.js")

            files = list(iter_files(root, [".js"], ignore=["**/*.spec.*", "**/__tests__/**"]))

            assert _rel(files, root) == ["src/util.js"]

    def test_gitignore_semantics(self):
        """Test directory patterns and negation from .gitignore."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            _write(root, ".gitignore", "generated/\n*.gen.js\n!important.gen.js\n")
            _write(root, "src/a.js")
            _write(root, "generated/x.js")
            _write(root, "src/b.gen.js")
            _write(root, "src/important.gen.js")

            files = list(iter_files(root, [".js"]))

            assert _rel(files, root) == ["src/a.js", "src/important.gen.js"]

    def test_either_rule_set_excludes(self):
        """Test that a file is excluded when only one rule set matches it."""
        rules = IgnoreRules(Path("/proj"), globs=["**/*.stories.*"], gitignore_lines=["legacy/"])

        assert rules.is_ignored("src/Button.stories.js")
        assert rules.is_ignored("legacy/old.js")
        assert not rules.is_ignored("src/Button.js")

    def test_missing_root(self):
        """Test that a missing root yields no files instead of an error."""
        assert list(iter_files(Path("/nonexistent/project/root"))) == []

    def test_sorted_order(self):
        """Test that enumeration order is deterministic."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            for name in ["c.js", "a.js", "b/z.js", "b/a.js"]:
                _write(root, name)

            files = [p.relative_to(root).as_posix() for p in iter_files(root, [".js"])]

            assert files == ["a.js", "b/a.js", "b/z.js", "c.js"]


class TestPathResolution:
    """Tests for import specifier resolution."""

    def test_alias_resolution(self):
        """Test resolving an alias-prefixed specifier."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            main = _write(root, "src/main.js")
            foo = _write(root, "src/components/Foo.vue")
            resolver = ModuleResolver(root, build_alias_table({"@": "src"}), [".vue", ".js"])

            assert resolver.resolve("@/components/Foo.vue", main) == foo

    def test_alias_not_found(self):
        """Test that a missing aliased file resolves to None."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            main = _write(root, "src/main.js")
            resolver = ModuleResolver(root, build_alias_table({"@": "src"}), [".vue", ".js"])

            assert resolver.resolve("@/components/Foo.vue", main) is None

    def test_longest_alias_wins(self):
        """Test that the most specific alias is used."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            main = _write(root, "src/main.js")
            _write(root, "src/ui/Button.vue")
            button = _write(root, "lib/ui/Button.vue")
            aliases = build_alias_table({"@": "src", "@/ui": "lib/ui"})
            resolver = ModuleResolver(root, aliases, [".vue"])

            assert aliases[0][0] == "@/ui"
            assert resolver.resolve("@/ui/Button", main) == button

    def test_relative_with_extension_probing(self):
        """Test appending configured extensions in order."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            main = _write(root, "src/main.js")
            util_ts = _write(root, "src/util.ts")
            _write(root, "src/util.js")
            resolver = ModuleResolver(root, [], [".ts", ".js"])

            assert resolver.resolve("./util", main) == util_ts

    def test_index_file(self):
        """Test resolving a directory to its index file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            main = _write(root, "src/main.js")
            index = _write(root, "src/store/index.js")
            resolver = ModuleResolver(root, [], [".vue", ".js"])

            assert resolver.resolve("./store", main) == index

    def test_parent_directory(self):
        """Test resolving relative to the containing file's directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            view = _write(root, "src/views/Home.vue")
            helper = _write(root, "src/helpers.js")
            resolver = ModuleResolver(root, [], [".js"])

            assert resolver.resolve("../helpers", view) == helper

    def test_bare_existing_file(self):
        """Test that a complete path with an unlisted extension still resolves."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            main = _write(root, "src/main.js")
            data = _write(root, "src/data.json", "{}")
            resolver = ModuleResolver(root, [], [".js"])

            assert resolver.resolve("./data.json", main) == data

    def test_all_extensions(self):
        """Test that with ALL any existing path resolves immediately."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            main = _write(root, "src/main.js")
            styles = _write(root, "src/styles.css")
            resolver = ModuleResolver(root, [], ALL_EXTENSIONS)

            assert resolver.resolve("./styles.css", main) == styles
            assert resolver.resolve("./styles", main) is None

    def test_package_never_probed(self):
        """Test that bare packages are skipped without touching the filesystem."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            main = _write(root, "src/main.js")
            _write(root, "src/lodash.js")
            resolver = ModuleResolver(root, build_alias_table({"@": "src"}), [".js"])

            assert resolver.resolve("lodash", main) is None
            assert resolver.resolve("@vue/runtime-core", main) is None
            assert resolver._exists == {}

    def test_existence_cache(self):
        """Test that each absolute path is probed once."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            a = _write(root, "src/a.js")
            b = _write(root, "src/b.js")
            _write(root, "src/shared.js")
            resolver = ModuleResolver(root, [], [".vue", ".js"])

            first = resolver.resolve("./shared", a)
            probed = dict(resolver._exists)
            second = resolver.resolve("./shared", b)

            assert first == second
            assert resolver._exists == probed

    def test_symlink_canonicalized(self):
        """Test that a symlinked file resolves to its real path."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            main = _write(root, "src/main.js")
            real = _write(root, "shared/real.js")
            os.symlink(real, root / "src" / "link.js")
            resolver = ModuleResolver(root, [], [".js"])

            assert resolver.resolve("./link", main) == real

    def test_resolve_entry(self):
        """Test that entry points use extension and alias probing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            main = _write(root, "src/main.ts")
            app = _write(root, "src/App.vue")
            resolver = ModuleResolver(root, build_alias_table({"@": "src"}), [".vue", ".ts"])

            assert resolver.resolve_entry("src/main") == main
            assert resolver.resolve_entry("@/App.vue") == app
            assert resolver.resolve_entry("src/missing.js") is None

    def test_is_package_import(self):
        """Test package detection."""
        aliases = build_alias_table({"@": "src", "~": "src"})

        assert is_package_import("lodash", aliases)
        assert is_package_import("@vue/test-utils", aliases)
        assert not is_package_import("./a", aliases)
        assert not is_package_import("../a", aliases)
        assert not is_package_import("/abs/a", aliases)
        assert not is_package_import("@/components/Foo", aliases)
        assert not is_package_import("~", aliases)


class TestImportExtraction:
    """Tests for import specifier extraction."""

    def test_static_imports(self):
        """Test default, named, namespace and side-effect imports."""
        code = (
            'import App from "./App.vue"\n'
            "import { ref } from 'vue'\n"
            'import * as utils from "@/utils"\n'
            'import "./styles.css"\n'
        )

        assert extract_imports(code) == {"./App.vue", "vue", "@/utils", "./styles.css"}

    def test_dynamic_import_and_require(self):
        """Test import() and require() with literal arguments."""
        code = (
            "const Home = () => import('./views/Home.vue')\n"
            "const config = require('./config')\n"
        )

        assert extract_imports(code) == {"./views/Home.vue", "./config"}

    def test_dynamic_import_magic_comment(self):
        """Test that bundler magic comments do not hide the specifier."""
        code = 'const About = () => import(/* webpackChunkName: "about" */ "./views/About.vue")\n'

        assert extract_imports(code) == {"./views/About.vue"}

    def test_non_literal_arguments_ignored(self):
        """Test that computed specifiers contribute nothing and do not crash."""
        code = (
            "const load = (name) => import('./lazy-' + name)\n"
            "const tpl = (name) => import(`./pages/${name}.vue`)\n"
            "const req = (name) => require(name)\n"
        )

        assert extract_imports(code) == set()

    def test_re_exports(self):
        """Test export-from declarations."""
        code = (
            "export { default as Button } from './Button.vue'\n"
            "export * from './helpers'\n"
        )

        assert extract_imports(code) == {"./Button.vue", "./helpers"}

    def test_typescript_syntax(self):
        """Test typed source with type-only imports."""
        code = (
            "import type { Props } from './types'\n"
            "import { defineComponent } from 'vue'\n"
            "const size: number = 3\n"
            "export function double(value: number): number { return value * size }\n"
        )

        assert extract_imports(code, TYPESCRIPT) == {"./types", "vue"}

    def test_jsx_syntax(self):
        """Test markup-in-script syntax."""
        code = (
            "import Card from './Card'\n"
            "export default function List() { return <div><Card title=\"x\" /></div> }\n"
        )

        assert extract_imports(code, TSX) == {"./Card"}

    def test_syntax_error_yields_nothing(self):
        """Test that a file that fails to parse contributes no specifiers."""
        code = "import { from './broken'\nconst = ;\n"

        assert extract_imports(code) == set()

    def test_empty_source(self):
        """Test empty input."""
        assert extract_imports("") == set()

    def test_dialect_selection(self):
        """Test grammar selection by extension and script lang."""
        assert dialect_for_suffix(".ts") == TYPESCRIPT
        assert dialect_for_suffix(".tsx") == TSX
        assert dialect_for_suffix(".js") == TSX
        assert dialect_for_lang("ts") == TYPESCRIPT
        assert dialect_for_lang(None) == TSX


class TestMarkupAnalysis:
    """Tests for crediting imports used in markup."""

    def test_template_tags(self):
        """Test PascalCase and kebab-case tag extraction."""
        markup = '<div><FooBar/><bar-baz :x="1"></bar-baz><span>hi</span></div>'

        tags = get_template_tags(markup)

        assert {"FooBar", "bar-baz", "div", "span"} <= tags

    def test_dynamic_component_binding(self):
        """Test :is bindings count as component usage."""
        markup = (
            '<component :is="Foo"/>'
            "<component :is=\"'Bar'\"/>"
            '<component v-bind:is="Baz"/>'
        )

        tags = get_template_tags(markup)

        assert {"Foo", "Bar", "Baz"} <= tags

    def test_prefixed_is_attributes_ignored(self):
        """Test that data-is and similar attributes are not component bindings."""
        markup = '<div data-is="Foo" aria-is="Bar" this="Baz"></div><tr is="Row"></tr>'

        tags = get_template_tags(markup)

        assert "Row" in tags
        assert not {"Foo", "Bar", "Baz"} & tags

    def test_kebab_to_pascal(self):
        """Test kebab-case to PascalCase conversion."""
        assert kebab_to_pascal("foo-bar") == "FooBar"
        assert kebab_to_pascal("my-fancy-button") == "MyFancyButton"
        assert kebab_to_pascal("FooBar") == "FooBar"

    def test_imported_components_default_only(self):
        """Test that only default-import bindings are components."""
        script = (
            "import FooBar from './foo-bar.vue'\n"
            "import { Named } from './named.vue'\n"
            "import * as All from './all'\n"
        )

        assert get_imported_components(script) == {"FooBar": "./foo-bar.vue"}

    def test_used_import_sources_pascal(self):
        """Test matching a tag as written."""
        components = {"FooBar": "./foo-bar.vue", "Unused": "./unused.vue"}

        assert get_used_import_sources({"FooBar", "div"}, components) == {"./foo-bar.vue"}

    def test_used_import_sources_kebab(self):
        """Test matching a kebab-case tag to a PascalCase binding."""
        components = {"FooBar": "./foo-bar.vue"}

        assert get_used_import_sources({"foo-bar"}, components) == {"./foo-bar.vue"}


class TestSfcSplitting:
    """Tests for component file splitting."""

    SFC = (
        "<template>\n"
        "  <div>\n"
        "    <template v-if=\"ok\"><FooBar/></template>\n"
        "  </div>\n"
        "</template>\n"
        "\n"
        "<script>\n"
        "import FooBar from './foo-bar.vue'\n"
        "export default { components: { FooBar } }\n"
        "</script>\n"
        "\n"
        "<script setup lang=\"ts\">\n"
        "import Other from './other.vue'\n"
        "</script>\n"
        "\n"
        "<style scoped src=\"./app.css\"></style>\n"
    )

    def test_nested_template(self):
        """Test that nested template tags stay in the markup region."""
        parts = Vue3Splitter().split(self.SFC)

        assert "<FooBar/>" in parts.markup
        assert parts.markup.count("<template") == 1
        assert "</div>" in parts.markup

    def test_vue3_merges_script_setup(self):
        """Test that Vue 3 reads both script blocks."""
        parts = Vue3Splitter().split(self.SFC)

        assert "./foo-bar.vue" in parts.script
        assert "./other.vue" in parts.script
        assert parts.script_lang == "ts"

    def test_vue2_single_script(self):
        """Test that Vue 2 reads one script block."""
        parts = Vue2Splitter().split(self.SFC)

        assert "./foo-bar.vue" in parts.script
        assert "./other.vue" not in parts.script

    def test_src_references(self):
        """Test that src attributes are reported."""
        parts = Vue3Splitter().split(self.SFC)

        assert parts.src_refs == ["./app.css"]

    def test_commented_block_skipped(self):
        """Test that a commented-out top-level block is ignored."""
        text = "<!-- <script>import X from './x'</script> -->\n<script>import Y from './y'</script>"

        blocks = iter_blocks(text)

        assert len(blocks) == 1
        assert "./y" in blocks[0].content

    def test_no_script(self):
        """Test a template-only component."""
        parts = Vue2Splitter().split("<template><div/></template>")

        assert parts.script == ""
        assert parts.markup == "<div/>"

    def test_base_splitter_is_abstract(self):
        """Test that only the version-specific splitters can be created."""
        with pytest.raises(TypeError):
            SfcSplitter()

        assert isinstance(get_splitter(Path("."), version=2), Vue2Splitter)
        assert isinstance(get_splitter(Path("."), version=3), Vue3Splitter)

    def test_detect_vue_version_installed(self):
        """Test detection from the installed package."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _write(root, "node_modules/vue/package.json", '{"version": "3.4.21"}')
            _write(root, "package.json", '{"dependencies": {"vue": "^2.7.0"}}')

            assert detect_vue_version(root) == 3

    def test_detect_vue_version_declared(self):
        """Test detection from the declared dependency range."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _write(root, "package.json", '{"dependencies": {"vue": "~2.6.14"}}')

            assert detect_vue_version(root) == 2

    def test_detect_vue_version_fallback(self):
        """Test the Vue 2 fallback."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert detect_vue_version(Path(tmpdir)) == 2
