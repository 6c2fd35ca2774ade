# notas/status.py — Classificação do aluno em verde/amarelo/vermelho
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .config import FATOR_ALERTA


class CorStatus(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


ROTULOS_STATUS = {
    CorStatus.GREEN: "Verde",
    CorStatus.YELLOW: "Amarelo",
    CorStatus.RED: "Vermelho",
}


def classificar_status(media_aluno: float, media_turma: float, reprovacao_anterior: bool) -> CorStatus:
    """
    Regras, na ordem:
      1. reprovação anterior → vermelho
      2. média da turma zero → verde (não há com o que comparar)
      3. aluno >= turma → verde
      4. aluno >= 90% da turma → amarelo (limite incluso)
      5. caso contrário → vermelho
    A comparação é por multiplicação exata, sem tolerância.
    """
    if reprovacao_anterior:
        return CorStatus.RED
    if media_turma == 0:
        return CorStatus.GREEN
    if media_aluno >= media_turma:
        return CorStatus.GREEN
    if media_aluno >= media_turma * FATOR_ALERTA:
        return CorStatus.YELLOW
    return CorStatus.RED


@dataclass
class StatusDetalhado:
    cor: CorStatus
    status: str
    motivos: List[Dict[str, str]] = field(default_factory=list)
    observacao: Optional[str] = None

    def para_dict(self) -> dict:
        dados = asdict(self)
        dados["cor"] = self.cor.value
        return dados


def _motivos(cor: CorStatus, media_aluno: float, media_turma: float, reprovacao_anterior: bool) -> List[Dict[str, str]]:
    if reprovacao_anterior:
        return [{"descricao": "Reprovação anterior", "detalhe": "O aluno já foi reprovado por falta nesta turma."}]
    if media_turma == 0:
        return [{"descricao": "Média da turma", "detalhe": "A turma ainda não tem média para comparação."}]

    comparacao = f"Média do aluno {media_aluno:.2f} frente à média da turma {media_turma:.2f}"
    if cor is CorStatus.GREEN:
        return [{"descricao": "Acima da média", "detalhe": comparacao}]
    limite = f"limite de alerta {media_turma * FATOR_ALERTA:.2f}"
    if cor is CorStatus.YELLOW:
        return [{"descricao": "Até 10% abaixo da média", "detalhe": f"{comparacao} ({limite})"}]
    return [{"descricao": "Mais de 10% abaixo da média", "detalhe": f"{comparacao} ({limite})"}]


def detalhar_status(
    media_aluno: float,
    media_turma: float,
    reprovacao_anterior: bool,
    observacao: Optional[str] = None,
) -> StatusDetalhado:
    cor = classificar_status(media_aluno, media_turma, reprovacao_anterior)
    return StatusDetalhado(
        cor=cor,
        status=ROTULOS_STATUS[cor],
        motivos=_motivos(cor, media_aluno, media_turma, reprovacao_anterior),
        observacao=observacao,
    )


def status_da_turma(turma) -> List[dict]:
    """Status de cada matrícula da turma, na ordem de matrícula."""
    media_turma = turma.media_da_turma()
    resultado = []
    for matricula in turma.matriculas:
        media_aluno = matricula.media_para_status()
        observacao = None
        if matricula.media_pre_final is None:
            observacao = "Média parcial: nem todas as metas foram avaliadas."
        detalhe = detalhar_status(media_aluno, media_turma, matricula.reprovado_por_falta, observacao)
        resultado.append({
            "student": matricula.estudante.para_dict(),
            "statusColor": detalhe.cor.value,
            "status": detalhe.status,
            "media": media_aluno,
            "mediaTurma": media_turma,
            "motivos": detalhe.motivos,
            "observacao": detalhe.observacao,
        })
    return resultado
