import csv
import json
import logging
import os

import pytest

from digital_library.book import Book, Status
from digital_library.library import Library
from digital_library.storage import (
    MalformedRecordError,
    PersistenceError,
    export_library,
    format_record,
    load_library,
    parse_record,
    save_library,
)


def _sample_library() -> Library:
    lib = Library(capacity=100)
    lib.add("Dune", "Frank Herbert", 1965, Status.WISHLIST)
    lib.add("Hyperion", "Dan Simmons", 1989, Status.READ)
    lib.add("Solaris", "Stanislaw Lem", 1961, Status.OWNED)
    lib.delete(2)
    return lib

def test_format_record():
    book = Book(12, "Dune", "Frank Herbert", 1965, Status.OWNED)
    assert format_record(book) == "12|Dune|Frank Herbert|1965|2"

def test_parse_record():
    book = parse_record("3|Beloved|Toni Morrison|1987|1\n")
    assert book == Book(3, "Beloved", "Toni Morrison", 1987, Status.READ)

@pytest.mark.parametrize("line", [
    "1|Only|Three",
    "1|Too|Many|1999|1|extra",
    "x|Title|Author|1999|1",
    "1|Title|Author|nineteen|1",
    "1|Title|Author|1999|read",
    "1|Title|Author|1999|4",
    "1_0|Title|Author|1999|1",
    " 1|Title|Author|1999|1",
    "1|Title|Author|+1999|1",
    "\u0661|Title|Author|1999|1",
    b"1|Faust|G\xf6the|1808|1",
])
def test_parse_record_malformed(line):
    with pytest.raises(MalformedRecordError):
        parse_record(line)

def test_save_writes_line_format(data_file):
    save_library(_sample_library(), data_file)

    with open(data_file, encoding="utf-8") as f:
        assert f.read() == "1|Dune|Frank Herbert|1965|3\n3|Solaris|Stanislaw Lem|1961|2\n"

def test_save_and_load_round_trip(data_file):
    lib = _sample_library()
    save_library(lib, data_file)

    loaded = load_library(data_file, capacity=100)
    assert loaded.list_books() == lib.list_books()
    assert loaded.next_id == 4

def test_save_overwrites_existing_file(data_file):
    with open(data_file, "w", encoding="utf-8") as f:
        f.write("99|Old|Data|1900|1\n" * 5)

    save_library(Library(capacity=10), data_file)
    assert os.path.getsize(data_file) == 0

def test_load_missing_file(tmp_path):
    lib = load_library(str(tmp_path / "missing.txt"))
    assert len(lib) == 0
    assert lib.next_id == 1

def test_load_skips_malformed_lines(data_file):
    with open(data_file, "w", encoding="utf-8") as f:
        f.write("5|Kindred|Octavia Butler|1979|2\n")
        f.write("9|Only|Three\n")

    lib = load_library(data_file)
    assert len(lib) == 1
    assert lib.list_books()[0].title == "Kindred"
    assert lib.next_id == 6

def test_load_logs_malformed_lines(data_file, caplog):
    with open(data_file, "w", encoding="utf-8") as f:
        f.write("garbage\n\n1|Title|Author|2000|1\n")

    with caplog.at_level(logging.DEBUG, logger="digital_library.storage"):
        lib = load_library(data_file)

    assert len(lib) == 1
    assert "1: skipping malformed record" in caplog.text

def test_load_stops_at_capacity(data_file, caplog):
    with open(data_file, "w", encoding="utf-8") as f:
        for i in range(1, 5):
            f.write(f"{i}|Book {i}|Author|2000|1\n")

    with caplog.at_level(logging.WARNING, logger="digital_library.storage"):
        lib = load_library(data_file, capacity=2)

    assert [b.id for b in lib.list_books()] == [1, 2]
    assert lib.next_id == 3
    assert "capacity (2) reached" in caplog.text

def test_load_unreadable_file_degrades_to_empty(tmp_path):
    # A directory cannot be opened for reading as a text file
    lib = load_library(str(tmp_path))
    assert len(lib) == 0
    assert lib.next_id == 1

def test_save_failure_is_surfaced(tmp_path):
    target = str(tmp_path / "no-such-dir" / "library.txt")
    with pytest.raises(PersistenceError):
        save_library(_sample_library(), target)

def test_delimiter_in_title_warns_and_breaks_reload(data_file, caplog):
    lib = Library(capacity=10)
    lib.add("Either|Or", "Kierkegaard", 1843, Status.OWNED)
    lib.add("Fear and Trembling", "Kierkegaard", 1843, Status.READ)

    with caplog.at_level(logging.WARNING, logger="digital_library.storage"):
        save_library(lib, data_file)
    assert "Book 1 contains ['|']" in caplog.text

    loaded = load_library(data_file)
    assert [b.id for b in loaded.list_books()] == [2]

def test_export_csv(tmp_path):
    path = str(tmp_path / "export.csv")
    assert export_library(_sample_library(), path, "csv") == 2

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["ID", "Title", "Author", "Year", "Status"]
    assert rows[1] == ["1", "Dune", "Frank Herbert", "1965", "wishlist"]

def test_export_json(tmp_path):
    path = str(tmp_path / "export.json")
    assert export_library(_sample_library(), path, "JSON") == 2

    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    assert data[1] == {"id": 3, "title": "Solaris", "author": "Stanislaw Lem", "year": 1961, "status": "owned"}

def test_export_unknown_format(tmp_path):
    with pytest.raises(ValueError, match="Unsupported format"):
        export_library(_sample_library(), str(tmp_path / "x.xml"), "xml")

def test_load_skips_only_the_undecodable_line(data_file):
    with open(data_file, "wb") as f:
        f.write(b"1|Dune|Frank Herbert|1965|3\n")
        f.write(b"2|Faust|G\xf6the|1808|1\n")
        f.write(b"3|Solaris|Stanislaw Lem|1961|2\n")

    lib = load_library(data_file)
    assert [b.id for b in lib.list_books()] == [1, 3]
    assert lib.next_id == 4

def test_load_keeps_non_ascii_utf8(data_file):
    with open(data_file, "wb") as f:
        f.write("4|Faust|Göthe|1808|1\n".encode("utf-8"))

    assert load_library(data_file).find_book(4).author == "Göthe"

def test_load_accepts_crlf_line_endings(data_file):
    with open(data_file, "wb") as f:
        f.write(b"1|Dune|Frank Herbert|1965|3\r\n2|Emma|Jane Austen|1815|1\r\n")

    lib = load_library(data_file)
    assert [b.title for b in lib.list_books()] == ["Dune", "Emma"]

def test_line_breaks_round_trip(data_file):
    lib = Library(capacity=10)
    lib.add("Line\nBreak", "A", 2000, Status.READ)
    lib.add("Carriage\rReturn", "B\r\nC", 2001, Status.OWNED)
    save_library(lib, data_file)

    loaded = load_library(data_file)
    assert loaded.list_books() == lib.list_books()
    assert [b.title for b in loaded.list_books()] == ["Line Break", "Carriage Return"]
    assert loaded.find_book(2).author == "B C"

def test_line_break_in_rebuilt_book_warns(data_file, caplog):
    lib = Library.from_books([Book(1, "Line\nBreak", "A", 2000, Status.READ)], capacity=10)

    with caplog.at_level(logging.WARNING, logger="digital_library.storage"):
        save_library(lib, data_file)
    assert "Book 1 contains ['\\n']" in caplog.text
