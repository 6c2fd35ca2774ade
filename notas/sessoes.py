# notas/sessoes.py — Sessões de importação (arquivo lido na fase 1, usado na fase 2)
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

from .config import TTL_SESSAO_PADRAO
from .erros import NaoEncontrado

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessaoImportacao:
    token: str
    cabecalhos: Tuple[str, ...]
    linhas: Tuple[Mapping[str, str], ...]
    criada_em: float
    turma_id: Optional[str] = None


class ArmazemSessoes:
    """
    Guarda o conteúdo dos arquivos enviados, por token opaco, durante `ttl`
    segundos. Relógio e gerador de token são injetáveis (testes de expiração
    sem esperar tempo real).

    Consumir uma sessão a remove: o mesmo upload não é aplicado duas vezes.
    """

    def __init__(
        self,
        ttl: float = TTL_SESSAO_PADRAO,
        relogio: Callable[[], float] = time.monotonic,
        gerar_token: Callable[[], str] = secrets.token_urlsafe,
    ):
        self.ttl = float(ttl)
        self._relogio = relogio
        self._gerar_token = gerar_token
        self._sessoes: Dict[str, SessaoImportacao] = {}
        self._trava = threading.Lock()

    def _expirada(self, sessao: SessaoImportacao, agora: float) -> bool:
        return agora - sessao.criada_em >= self.ttl

    def _limpar_expiradas(self, agora: float) -> int:
        vencidas = [t for t, s in self._sessoes.items() if self._expirada(s, agora)]
        for token in vencidas:
            del self._sessoes[token]
        return len(vencidas)

    def criar(
        self,
        cabecalhos: Iterable[str],
        linhas: Iterable[Mapping[str, str]],
        turma_id: Optional[str] = None,
    ) -> SessaoImportacao:
        with self._trava:
            agora = self._relogio()
            self._limpar_expiradas(agora)
            token = self._gerar_token()
            while token in self._sessoes:
                token = self._gerar_token()
            sessao = SessaoImportacao(
                token=token,
                cabecalhos=tuple(cabecalhos),
                linhas=tuple(dict(linha) for linha in linhas),
                criada_em=agora,
                turma_id=turma_id,
            )
            self._sessoes[token] = sessao
        logger.info("Sessão de importação criada (%d linha(s), turma=%s)", len(sessao.linhas), turma_id)
        return sessao

    def obter(self, token: str) -> SessaoImportacao:
        with self._trava:
            sessao = self._sessoes.get(token)
            if sessao is not None and self._expirada(sessao, self._relogio()):
                del self._sessoes[token]
                sessao = None
        if sessao is None:
            raise NaoEncontrado("Session not found or expired")
        return sessao

    def consumir(self, token: str) -> SessaoImportacao:
        with self._trava:
            sessao = self._sessoes.pop(token, None)
            if sessao is not None and self._expirada(sessao, self._relogio()):
                sessao = None
        if sessao is None:
            raise NaoEncontrado("Session not found or expired")
        logger.info("Sessão de importação consumida (turma=%s)", sessao.turma_id)
        return sessao

    def descartar(self, token: str) -> bool:
        with self._trava:
            return self._sessoes.pop(token, None) is not None

    def limpar_expiradas(self) -> int:
        with self._trava:
            return self._limpar_expiradas(self._relogio())

    def __len__(self) -> int:
        with self._trava:
            return len(self._sessoes)

    def __contains__(self, token: str) -> bool:
        with self._trava:
            sessao = self._sessoes.get(token)
            return sessao is not None and not self._expirada(sessao, self._relogio())
