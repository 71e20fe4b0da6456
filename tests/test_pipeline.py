import json

import pandas as pd
import pytest

from textclusters.pipeline import load_documents, main


def test_load_documents_json_list(tmp_path, cat_quantum_docs):
    path = tmp_path / "docs.json"
    path.write_text(json.dumps(cat_quantum_docs), encoding="utf-8")
    assert load_documents(str(path)) == cat_quantum_docs


def test_load_documents_json_dict(tmp_path, cat_quantum_docs):
    path = tmp_path / "docs.json"
    path.write_text(json.dumps({"documents": cat_quantum_docs}), encoding="utf-8")
    assert len(load_documents(str(path))) == 4


def test_load_documents_jsonl(tmp_path, cat_quantum_docs):
    path = tmp_path / "docs.jsonl"
    path.write_text("\n".join(json.dumps(d) for d in cat_quantum_docs) + "\n\n", encoding="utf-8")
    assert load_documents(str(path)) == cat_quantum_docs


def test_load_documents_csv(tmp_path, cat_quantum_docs):
    path = tmp_path / "docs.csv"
    pd.DataFrame(cat_quantum_docs).to_csv(path, index=False)
    docs = load_documents(str(path))
    assert [d["id"] for d in docs] == ["cat-1", "cat-2", "q-1", "q-2"]


def test_load_documents_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_documents(str(tmp_path / "missing.json"))

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"items": []}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_documents(str(bad))

    no_text = tmp_path / "bad.csv"
    no_text.write_text("id,body\n1,hello\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_documents(str(no_text))


def test_load_documents_default_sample():
    assert len(load_documents()) == 24


def test_cli_cluster_writes_csv(tmp_path, cat_quantum_docs, capsys):
    data = tmp_path / "docs.json"
    data.write_text(json.dumps(cat_quantum_docs), encoding="utf-8")
    out = tmp_path / "points.csv"

    code = main(["cluster", "--data", str(data), "--k", "2", "--seed", "1", "--out", str(out)])

    assert code == 0
    df = pd.read_csv(out)
    assert list(df.columns) == ["id", "x", "y", "cluster", "text"]
    assert len(df) == 4
    assert "2 clusters" in capsys.readouterr().out


def test_cli_cluster_json(tmp_path, cat_quantum_docs, capsys):
    data = tmp_path / "docs.json"
    data.write_text(json.dumps(cat_quantum_docs), encoding="utf-8")

    assert main(["cluster", "--data", str(data), "--seed", "1", "--json"]) == 0
    body = json.loads(capsys.readouterr().out)
    assert body["result"]["method"] == "tfidf-mds"


def test_cli_degenerate_input_exit_code(tmp_path):
    data = tmp_path / "docs.json"
    data.write_text(json.dumps(["just one document"]), encoding="utf-8")
    assert main(["cluster", "--data", str(data)]) == 2


def test_cli_missing_file(tmp_path, capsys):
    assert main(["cluster", "--data", str(tmp_path / "nope.json")]) == 1
    assert "not found" in capsys.readouterr().err


def test_cli_without_command(capsys):
    assert main([]) == 0
    assert "cluster" in capsys.readouterr().out
