#
# test_users.py
# Nextcloud WebDAV Backup
#
# Checks users list parsing: comments, blank lines, trimming, extra fields and a missing trailing newline.
#
# Thales Matheus Mendonça Santos - October 2026
#
from nextcloud_backup.users import UserCredential, load_users, parse_users


def test_parse_users_skips_blank_comment_and_empty_username():
    lines = ["", "   ", "# admin,secret", "  #x,y", ",orphan-password", "alice,secret1"]
    assert parse_users(lines) == [UserCredential("alice", "secret1")]


def test_parse_users_trims_and_ignores_extra_fields():
    users = parse_users(["  bob  ,  pw  , extra, more\r\n"])
    assert users == [UserCredential("bob", "pw")]


def test_parse_users_keeps_empty_secret():
    # Empty password is a reportable failure, so the record must survive parsing.
    assert parse_users(["bob,", "carol"]) == [UserCredential("bob", ""), UserCredential("carol", "")]


def test_load_users_without_trailing_newline(tmp_path):
    f = tmp_path / "users.csv"
    f.write_text("alice,one\nbob,two")
    assert [u.username for u in load_users(f)] == ["alice", "bob"]


def test_repr_hides_secret():
    assert "s3cret" not in repr(UserCredential("alice", "s3cret"))
