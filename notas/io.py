# notas/io.py — Leitura de planilhas enviadas para importação (CSV; XLSX ainda não)
import csv
import io
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import chardet
import pandas as pd

from .config import EXTENSOES_PLANILHA, EXTENSOES_TABULARES
from .erros import ErroValidacao, NaoImplementado

logger = logging.getLogger(__name__)

# Assinaturas de arquivos binários de planilha
_MAGICO_XLSX = b"PK\x03\x04"
_MAGICO_XLS = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

FORMATO_CSV = "csv"
FORMATO_XLSX = "xlsx"


class LeitorPlanilha(ABC):
    """
    Leitor de um arquivo tabular: cabeçalhos e linhas.

    `caminho` identifica o arquivo; quando `conteudo` é informado (upload em
    memória) o disco não é consultado.
    """

    def __init__(self, caminho: str, conteudo: Optional[bytes] = None):
        self.caminho = caminho
        self.conteudo = conteudo

    def _carregar_arquivo(self) -> bytes:
        if self.conteudo is not None:
            return bytes(self.conteudo)
        with open(self.caminho, "rb") as f:
            return f.read()

    @abstractmethod
    def obter_colunas(self) -> List[str]:
        """Cabeçalhos, na ordem do arquivo, sem espaços nas pontas."""

    @abstractmethod
    def processar(self) -> List[Dict[str, str]]:
        """Uma entrada por linha de dados: cabeçalho → valor (célula vazia = "")."""


def _detectar_codificacao(bruto: bytes) -> str:
    """Tenta detectar encoding com chardet; se falhar, retorna 'utf-8'."""
    res = chardet.detect(bruto[:65536]) or {}
    return res.get("encoding") or "utf-8"


def _ler_csv_como_texto(bruto: bytes) -> pd.DataFrame:
    """
    Lê o CSV com todas as células como texto, tentando:
      - encodings: UTF-8/UTF-8-SIG (prioridade), detectado, latin-1, cp1252
      - separadores: ';', ',', '\\t' e auto (sep=None)
    Em cada encoding fica com o separador que rende mais colunas (empate: a
    ordem acima); se nenhum render 2 ou mais (arquivo de uma coluna só), usa a
    primeira leitura bem-sucedida. `index_col=False` mantém as células nos
    cabeçalhos certos quando a linha termina com delimitador.
    """
    enc_candidates = []
    # UTF-8 primeiro para evitar mojibake quando chardet "chuta" cp1252;
    # utf-8-sig antes de utf-8 para o BOM não grudar no primeiro cabeçalho
    for e in ["utf-8-sig", "utf-8", _detectar_codificacao(bruto), "latin-1", "cp1252"]:
        if e and e.lower() not in [x.lower() for x in enc_candidates]:
            enc_candidates.append(e)

    seps = [";", ",", "\t", None]  # None => auto-detecção (engine='python')

    primeira = None
    ultimo_erro = None
    for enc in enc_candidates:
        melhor = None
        for sep in seps:
            try:
                df = pd.read_csv(
                    io.BytesIO(bruto),
                    sep=sep,
                    encoding=enc,
                    engine="python",
                    dtype=str,
                    index_col=False,
                    keep_default_na=False,
                    skip_blank_lines=True,
                )
            except pd.errors.EmptyDataError:
                return pd.DataFrame()
            except (ValueError, csv.Error) as e:
                # csv.Error: o sniffer (sep=None) não achou delimitador
                ultimo_erro = e
                continue
            if primeira is None:
                primeira = df
            if df.shape[1] >= 2 and (melhor is None or df.shape[1] > melhor.shape[1]):
                melhor = df
        if melhor is not None:
            return melhor
    if primeira is not None:
        return primeira
    raise ErroValidacao(f"Não foi possível ler o arquivo CSV: {ultimo_erro}")


def _texto_celula(v) -> str:
    # linha com menos campos que o cabeçalho vem com NaN
    if v is None or (isinstance(v, float) and pd.isna(v)):
        return ""
    return str(v).strip()


class LeitorCSV(LeitorPlanilha):
    _NAO_LIDO = object()

    def __init__(self, caminho: str, conteudo: Optional[bytes] = None):
        super().__init__(caminho, conteudo)
        self._df = self._NAO_LIDO

    def _tabela(self) -> Optional[pd.DataFrame]:
        # colunas e linhas saem da mesma leitura
        if self._df is self._NAO_LIDO:
            bruto = self._carregar_arquivo()
            self._df = _ler_csv_como_texto(bruto) if bruto.strip() else None
        return self._df

    def obter_colunas(self) -> List[str]:
        df = self._tabela()
        if df is None:
            return []
        return [str(c).strip() for c in df.columns]

    def processar(self) -> List[Dict[str, str]]:
        df = self._tabela()
        if df is None:
            return []
        colunas = [str(c).strip() for c in df.columns]
        linhas = []
        for valores in df.itertuples(index=False, name=None):
            linhas.append({col: _texto_celula(v) for col, v in zip(colunas, valores)})
        logger.debug("%s: %d linha(s) lida(s)", self.caminho, len(linhas))
        return linhas


class LeitorXLSX(LeitorPlanilha):
    """Lacuna conhecida: planilhas binárias ainda não são lidas."""

    def obter_colunas(self) -> List[str]:
        raise NaoImplementado("Not implemented")

    def processar(self) -> List[Dict[str, str]]:
        raise NaoImplementado("Method not implemented yet")


def detectar_formato(nome: str, conteudo: Optional[bytes] = None) -> str:
    """
    Escolhe o formato pela extensão e confirma pelo conteúdo (quando há).
    Qualquer outra coisa é recusada em vez de ser lida às cegas.
    """
    ext = os.path.splitext(str(nome))[1].lower()
    cabeca = (conteudo or b"")[:8]
    binario = cabeca.startswith(_MAGICO_XLSX) or cabeca.startswith(_MAGICO_XLS)

    if ext in EXTENSOES_PLANILHA:
        if conteudo is not None and conteudo and not binario:
            raise ErroValidacao(f"Invalid file type: '{nome}' não parece uma planilha {ext}")
        return FORMATO_XLSX
    if ext in EXTENSOES_TABULARES:
        if binario:
            raise ErroValidacao(f"Invalid file type: '{nome}' tem conteúdo binário, não CSV")
        return FORMATO_CSV
    raise ErroValidacao(f"Invalid file type: '{nome}' (aceitos: CSV ou XLSX)")


def leitor_para(nome: str, conteudo: Optional[bytes] = None) -> LeitorPlanilha:
    formato = detectar_formato(nome, conteudo)
    if formato == FORMATO_XLSX:
        return LeitorXLSX(nome, conteudo)
    return LeitorCSV(nome, conteudo)
