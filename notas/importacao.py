# notas/importacao.py — Importação de notas em duas fases (upload → mapeamento)
import logging
import threading
import weakref
from typing import Dict, List, Mapping, Optional, Tuple

from .config import COLUNA_CPF, META_FINAL
from .erros import ErroPersistencia, ErroValidacao
from .especificacao import Conceito
from .io import leitor_para
from .matricula import Matricula
from .sessoes import ArmazemSessoes
from .turma import Turma

logger = logging.getLogger(__name__)


class ImportadorNotas:
    """
    Fase 1 (`enviar_arquivo`): lê o arquivo e guarda cabeçalhos/linhas numa
    sessão. Fase 2 (`aplicar_mapeamento`): traduz colunas do arquivo para
    cpf/metas, valida TODAS as linhas e só então altera as matrículas.

    Nenhuma linha é aplicada se alguma for inválida. A sessão só é consumida
    depois que todas as linhas passam na validação; um mapeamento corrigido
    pode ser reenviado.
    """

    def __init__(self, turmas, sessoes: Optional[ArmazemSessoes] = None):
        self.turmas = turmas
        self.sessoes = sessoes if sessoes is not None else ArmazemSessoes()
        self._travas = weakref.WeakValueDictionary()
        self._trava_travas = threading.Lock()

    def _trava_da_turma(self, turma_id: str) -> threading.Lock:
        with self._trava_travas:
            trava = self._travas.get(turma_id)
            if trava is None:
                trava = threading.Lock()
                self._travas[turma_id] = trava
            return trava

    # -------- Fase 1 --------
    def enviar_arquivo(self, turma_id: str, nome_arquivo: str, conteudo: Optional[bytes] = None) -> dict:
        turma = self.turmas.obter(turma_id)
        leitor = leitor_para(nome_arquivo, conteudo)
        colunas = leitor.obter_colunas()
        linhas = leitor.processar()
        sessao = self.sessoes.criar(colunas, linhas, turma_id=turma.id)
        logger.info("Arquivo %s recebido para a turma %s: %d coluna(s), %d linha(s)",
                    nome_arquivo, turma.id, len(colunas), len(linhas))
        return {
            "session_string": sessao.token,
            "file_columns": list(colunas),
            "mapping_columns": turma.metas_de_mapeamento(),
        }

    # -------- Fase 2 --------
    def aplicar_mapeamento(self, turma_id: str, token: str, mapeamento: Mapping[str, str]) -> List[Dict[str, str]]:
        turma = self.turmas.obter(turma_id)
        with self._trava_da_turma(turma.id):
            sessao = self.sessoes.obter(token)
            if sessao.turma_id is not None and sessao.turma_id != turma.id:
                raise ErroValidacao(f"Session belongs to class {sessao.turma_id}, not {turma.id}")

            mapa = validar_mapeamento(mapeamento, sessao.cabecalhos, turma.metas_de_mapeamento())
            linhas = normalizar_linhas(sessao.linhas, mapa)
            validadas = self._validar_linhas(turma, linhas)
            # sessão vencida aqui ainda não alterou nenhuma matrícula
            self.sessoes.consumir(token)

            for matricula, linha in validadas:
                _aplicar_linha(matricula, linha)
            for matricula in {id(m): m for m, _ in validadas}.values():
                matricula.recalcular_medias()

            logger.info("Importação aplicada na turma %s: %d linha(s)", turma.id, len(linhas))

            try:
                self.turmas.salvar()
            except ErroPersistencia:
                # memória já alterada; o chamador decide se tenta salvar de novo
                logger.exception("Falha ao salvar a turma %s após a importação", turma.id)
                raise
        return linhas

    def _validar_linhas(self, turma: Turma, linhas: List[Dict[str, str]]) -> List[Tuple[Matricula, Dict[str, str]]]:
        validadas = []
        for linha in linhas:
            cpf = linha.get(COLUNA_CPF, "")
            matricula = turma.obter_matricula(cpf)
            for meta, valor in linha.items():
                if meta == COLUNA_CPF or valor == "":
                    continue
                try:
                    Conceito.de_texto(valor)
                except ErroValidacao:
                    raise ErroValidacao(f"Invalid grade '{valor}' for goal '{meta}' (CPF {cpf})") from None
            validadas.append((matricula, linha))
        return validadas


def validar_mapeamento(mapeamento: Mapping[str, str], cabecalhos, alvos_aceitos) -> Dict[str, str]:
    """
    Confere o mapeamento coluna do arquivo → alvo antes de tocar nas linhas.
    Alvos vazios significam "ignorar a coluna" e são descartados.
    """
    if not isinstance(mapeamento, Mapping):
        raise ErroValidacao("Invalid mapping: expected an object of file column → target column")

    mapa = {}
    usados = set()
    for coluna, alvo in mapeamento.items():
        coluna = str(coluna).strip()
        alvo = str(alvo).strip() if alvo is not None else ""
        if not alvo:
            continue
        if alvo not in alvos_aceitos:
            raise ErroValidacao(f"Invalid mapping: '{alvo}' is not a recognized target column")
        if coluna not in cabecalhos:
            raise ErroValidacao(f"Invalid mapping: column '{coluna}' is not in the uploaded file")
        if alvo in usados:
            raise ErroValidacao(f"Invalid mapping: target '{alvo}' mapped more than once")
        usados.add(alvo)
        mapa[coluna] = alvo

    if COLUNA_CPF not in usados:
        raise ErroValidacao(f"Invalid mapping: no file column mapped to '{COLUNA_CPF}'")
    return mapa


def normalizar_linhas(linhas, mapa: Mapping[str, str]) -> List[Dict[str, str]]:
    """Uma linha por registro do arquivo, com as chaves já trocadas pelos alvos."""
    normalizadas = []
    for linha in linhas:
        normalizadas.append({alvo: str(linha.get(coluna, "") or "").strip() for coluna, alvo in mapa.items()})
    return normalizadas


def _aplicar_linha(matricula: Matricula, linha: Mapping[str, str]) -> None:
    for meta, valor in linha.items():
        if meta == COLUNA_CPF:
            continue
        if valor == "":
            matricula.remover_avaliacao(meta)
        elif meta == META_FINAL:
            matricula.nota_final = valor
        else:
            matricula.adicionar_ou_atualizar_avaliacao(meta, valor)
