# notas/api.py — Entrada externa: cada operação devolve (status HTTP, corpo)
import logging
import os
from typing import Any, Optional, Tuple

from .config import ARQUIVO_ESTUDANTES, ARQUIVO_TURMAS, DIRETORIO_DADOS_PADRAO
from .erros import ErroNotas, ErroValidacao
from .importacao import ImportadorNotas
from .repositorio import RegistroEstudantes, RegistroTurmas
from .sessoes import ArmazemSessoes
from .status import status_da_turma

logger = logging.getLogger(__name__)

Resposta = Tuple[int, Any]


def _erro(e: ErroNotas) -> Resposta:
    return e.status_http, {"error": e.mensagem}


class ServicoNotas:
    """
    Liga registros, sessões e importador e traduz exceções do domínio em
    respostas `{"error": mensagem}` com o status de cada exceção.
    """

    def __init__(
        self,
        estudantes: RegistroEstudantes,
        turmas: RegistroTurmas,
        sessoes: Optional[ArmazemSessoes] = None,
    ):
        self.estudantes = estudantes
        self.turmas = turmas
        self.sessoes = sessoes if sessoes is not None else ArmazemSessoes()
        self.importador = ImportadorNotas(turmas, self.sessoes)

    @classmethod
    def a_partir_do_diretorio(cls, diretorio: str = DIRETORIO_DADOS_PADRAO, sessoes: Optional[ArmazemSessoes] = None):
        estudantes = RegistroEstudantes(os.path.join(diretorio, ARQUIVO_ESTUDANTES)).carregar()
        turmas = RegistroTurmas(os.path.join(diretorio, ARQUIVO_TURMAS), estudantes).carregar()
        return cls(estudantes, turmas, sessoes)

    def importar_notas(self, turma_id: str, *, arquivo: Optional[Tuple[str, bytes]] = None, corpo: Optional[dict] = None) -> Resposta:
        """
        Mesmo ponto de entrada para as duas fases:
          - `arquivo=(nome, bytes)`: upload (fase 1)
          - `corpo={"session_string": ..., "mapping": {...}}`: mapeamento (fase 2)
        """
        try:
            if arquivo is not None:
                nome, conteudo = arquivo
                return 200, self.importador.enviar_arquivo(turma_id, nome, conteudo)
            if corpo is not None:
                token, mapeamento = _campos_da_fase_2(corpo)
                return 200, self.importador.aplicar_mapeamento(turma_id, token, mapeamento)
            raise ErroValidacao("No file or mapping provided")
        except ErroNotas as e:
            if e.status_http >= 500:
                logger.error("Importação na turma %s falhou: %s", turma_id, e.mensagem)
            return _erro(e)

    def status_dos_estudantes(self, turma_id: str) -> Resposta:
        try:
            turma = self.turmas.obter(turma_id)
        except ErroNotas as e:
            return _erro(e)
        return 200, status_da_turma(turma)


def _campos_da_fase_2(corpo) -> Tuple[str, dict]:
    if not isinstance(corpo, dict):
        raise ErroValidacao("Invalid request body: expected a JSON object")
    token = corpo.get("session_string")
    mapeamento = corpo.get("mapping")
    if not token or not isinstance(token, str):
        raise ErroValidacao("Missing 'session_string'")
    if not isinstance(mapeamento, dict):
        raise ErroValidacao("Missing 'mapping'")
    return token, mapeamento
