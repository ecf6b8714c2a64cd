"""Tests for reading ERP exports from disk and from uploaded file objects."""

import io

import pandas as pd
import pytest

from offerscore.clients.catalog_loader import ExportReadError, detect_delimiter, read_table

SALES_CSV = (
    "Código;Descrição;Mes/Ano;Soma de Qtd;Média de Valor Unitário\r\n"
    "A1;Livro A;12024;10;R$ 50,00\r\n"
    ";;;;\r\n"
    "A1;Livro A;22024;10;50\r\n"
)

STOCK_CSV = "Nº Item;Descrição;Quantidade Disponível\nA1;Livro A;100\nZ9;Só no estoque;5\n"


@pytest.fixture
def sales_file(tmp_path):
    path = tmp_path / "vendas.csv"
    path.write_bytes(SALES_CSV.encode("utf-8-sig"))
    return path


@pytest.fixture
def stock_file(tmp_path):
    path = tmp_path / "estoque.csv"
    path.write_bytes(STOCK_CSV.encode("latin-1"))
    return path


class TestReadTable:
    def test_utf8_bom_semicolons(self, sales_file):
        df = read_table(sales_file)
        assert list(df.columns)[0] == "Código"
        assert df["Média de Valor Unitário"].tolist() == ["R$ 50,00", "50"]

    def test_blank_rows_dropped(self, sales_file):
        assert len(read_table(sales_file)) == 2

    def test_every_cell_is_text(self, sales_file):
        df = read_table(sales_file)
        assert df["Mes/Ano"].tolist() == ["12024", "22024"]
        assert df["Soma de Qtd"].tolist() == ["10", "10"]

    def test_latin1_fallback(self, stock_file):
        df = read_table(stock_file)
        assert list(df.columns) == ["Nº Item", "Descrição", "Quantidade Disponível"]
        assert df["Descrição"].tolist() == ["Livro A", "Só no estoque"]

    def test_uploaded_file_object(self):
        upload = io.BytesIO(STOCK_CSV.encode("latin-1"))
        df = read_table(upload, filename="estoque.csv")
        assert df["Nº Item"].tolist() == ["A1", "Z9"]

    def test_comma_delimited(self, tmp_path):
        path = tmp_path / "resaved.csv"
        path.write_text("Código,Soma de Qtd\nA1,3\nB2,4\n", encoding="utf-8")
        df = read_table(str(path))
        assert df["Soma de Qtd"].tolist() == ["3", "4"]

    def test_excel(self, tmp_path):
        path = tmp_path / "vendas.xlsx"
        pd.DataFrame({"Código": ["A1", "B2"], "Soma de Qtd": [3, 4]}).to_excel(path, index=False)
        df = read_table(path)
        assert df["Código"].tolist() == ["A1", "B2"]
        assert df["Soma de Qtd"].tolist() == ["3", "4"]


class TestDelimiters:
    def test_single_column_file(self):
        df = read_table(io.BytesIO(b"Codigo\nA1\nB2\n"), filename="vendas.csv")
        assert list(df.columns) == ["Codigo"]
        assert df["Codigo"].tolist() == ["A1", "B2"]

    def test_semicolon_file_with_comma_in_header(self):
        data = "Código;Preço, R$;Qtd\nA1;50,00;3\nB2;12,50;4\n".encode("utf-8")
        df = read_table(io.BytesIO(data), filename="vendas.csv")
        assert list(df.columns) == ["Código", "Preço, R$", "Qtd"]
        assert df["Preço, R$"].tolist() == ["50,00", "12,50"]

    def test_tab_delimited(self):
        df = read_table(io.BytesIO(b"Codigo\tQtd\nA1\t3\n"), filename="vendas.tsv")
        assert df["Qtd"].tolist() == ["3"]

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("a;b;c\n1;2;3\n", ";"),
            ("a,b\n1,2\n", ","),
            ("a|b\n1|2\n", "|"),
            ("Codigo\nA1\n", ";"),
            ("a;b,c\n1;2,5\n", ";"),
        ],
    )
    def test_detect_delimiter(self, text, expected):
        assert detect_delimiter(text) == expected


class TestUnreadableExports:
    @pytest.mark.parametrize("content", [b"", b"  \r\n\r\n"])
    def test_empty_upload(self, content):
        with pytest.raises(ExportReadError):
            read_table(io.BytesIO(content), filename="vendas.csv")

    def test_broken_excel(self):
        with pytest.raises(ExportReadError):
            read_table(io.BytesIO(b"not a workbook"), filename="vendas.xlsx")

    def test_is_a_value_error(self):
        assert issubclass(ExportReadError, ValueError)
