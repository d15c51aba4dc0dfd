"""
Tests for vaultmcp/store: the filesystem vault and note metadata extraction.
"""

import pytest

from vaultmcp.errors import CollaboratorError
from vaultmcp.store.metadata import extract_metadata, split_frontmatter
from vaultmcp.store.vault import DirectoryNode, FileNode, NotFound


def test_list_markdown_files_sorted_and_skips_hidden(store):
    paths = [node.path for node in store.list_markdown_files()]
    assert paths == [
        "alpha.md",
        "Templates/meeting.md",
        "Templates/sub/daily.md",
        "projects/beta.md",
        "projects/gamma.md",
    ]
    assert not any(".obsidian" in p for p in paths)


def test_list_markdown_files_is_stable(store):
    first = [node.path for node in store.list_markdown_files()]
    second = [node.path for node in store.list_markdown_files()]
    assert first == second


def test_list_all_includes_folders_and_other_files(store):
    nodes = store.list_all()
    folders = {n.path for n in nodes if isinstance(n, DirectoryNode)}
    files = {n.path for n in nodes if isinstance(n, FileNode)}
    assert {"Templates", "Templates/sub", "projects", "attachments"} <= folders
    assert "attachments/image.png" in files
    assert ".obsidian" not in folders


def test_stat_node_variants(store):
    file_node = store.stat_node("alpha.md")
    assert isinstance(file_node, FileNode)
    assert file_node.basename == "alpha"
    assert file_node.extension == "md"
    assert file_node.stat.size > 0

    assert isinstance(store.stat_node("projects"), DirectoryNode)
    assert isinstance(store.stat_node("missing.md"), NotFound)
    assert store.stat("projects") is None


def test_path_escape_rejected(store):
    with pytest.raises(CollaboratorError, match="escapes"):
        store.read("../outside.md")


def test_read_missing_file(store):
    with pytest.raises(CollaboratorError, match="File not found: nope.md"):
        store.read("nope.md")


def test_cached_read_sees_modifications(store, vault_root):
    assert store.cached_read("alpha.md").startswith("Alpha")
    (vault_root / "alpha.md").write_text("Changed content with a different length", encoding="utf-8")
    assert store.cached_read("alpha.md") == "Changed content with a different length"


def test_create_makes_parents_and_refuses_overwrite(store, vault_root):
    store.create("new/deep/note.md", "hello")
    assert (vault_root / "new/deep/note.md").read_text(encoding="utf-8") == "hello"
    with pytest.raises(CollaboratorError, match="already exists"):
        store.create("new/deep/note.md", "again")


def test_modify_requires_existing_file(store):
    store.modify("alpha.md", "rewritten")
    assert store.read("alpha.md") == "rewritten"
    with pytest.raises(CollaboratorError, match="File not found"):
        store.modify("missing.md", "x")


def test_delete_file_and_directory(store, vault_root):
    store.delete("alpha.md")
    assert not (vault_root / "alpha.md").exists()
    store.delete("projects")
    assert not (vault_root / "projects").exists()


def test_delete_missing_and_root(store):
    with pytest.raises(CollaboratorError, match="File or directory not found: ghost.md"):
        store.delete("ghost.md")
    with pytest.raises(CollaboratorError, match="vault root"):
        store.delete("")


class TestMetadata:
    def test_split_frontmatter(self):
        frontmatter, body = split_frontmatter("---\ntitle: Hi\n---\nBody text\n")
        assert frontmatter == {"title": "Hi"}
        assert body == "Body text\n"

    def test_no_frontmatter(self):
        frontmatter, body = split_frontmatter("Just text")
        assert frontmatter == {}
        assert body == "Just text"

    def test_malformed_frontmatter_is_ignored(self):
        frontmatter, _ = split_frontmatter("---\n: : bad: [\n---\nBody")
        assert frontmatter == {}

    def test_tags_merge_frontmatter_and_inline(self):
        content = (
            "---\ntags: [work, '#python']\n---\n"
            "# Heading\n"
            "Some #python and #ideas/new here.\n"
            "```\n#not-a-tag in code\n```\n"
        )
        metadata = extract_metadata(content)
        assert metadata.tags == ["work", "python", "ideas/new"]
        assert metadata.frontmatter["tags"] == ["work", "#python"]

    def test_string_tags_in_frontmatter(self):
        assert extract_metadata("---\ntags: a, b\n---\n").tags == ["a", "b"]
