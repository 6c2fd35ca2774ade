import altair as alt
import pandas as pd

from .status import CorStatus, ROTULOS_STATUS

_CORES = {
    ROTULOS_STATUS[CorStatus.GREEN]: "#2e7d32",
    ROTULOS_STATUS[CorStatus.YELLOW]: "#f9a825",
    ROTULOS_STATUS[CorStatus.RED]: "#c62828",
}


def tabela_status(status_alunos) -> pd.DataFrame:
    """Achata a saída de `status_da_turma` numa tabela (uma linha por aluno)."""
    linhas = []
    for item in status_alunos:
        aluno = item.get("student") or {}
        linhas.append({
            "Estudante": aluno.get("name") or aluno.get("cpf", ""),
            "CPF": aluno.get("cpf", ""),
            "Media": item.get("media"),
            "MediaTurma": item.get("mediaTurma"),
            "Status": item.get("status"),
        })
    return pd.DataFrame(linhas, columns=["Estudante", "CPF", "Media", "MediaTurma", "Status"])


def grafico_media_vs_turma(df: pd.DataFrame):
    """
    Barra por estudante (cor = status) e linha tracejada na média da turma.
    Requer colunas: Estudante, Media, MediaTurma, Status.
    """
    if df.empty:
        return alt.Chart(pd.DataFrame({"msg": ["Nenhum estudante matriculado."]})) \
                 .mark_text(size=16) \
                 .encode(text="msg")
    barras = alt.Chart(df).mark_bar().encode(
        x=alt.X("Estudante:N", title="Estudante", sort="-y"),
        y=alt.Y("Media:Q", title="Média", scale=alt.Scale(domain=[0, 10])),
        color=alt.Color(
            "Status:N",
            title="Status",
            scale=alt.Scale(domain=list(_CORES), range=list(_CORES.values())),
        ),
        tooltip=["Estudante", "CPF", "Media", "MediaTurma", "Status"],
    )
    media_turma = alt.Chart(df.head(1)).mark_rule(strokeDash=[6, 4]).encode(
        y="MediaTurma:Q",
        tooltip=["MediaTurma"],
    )
    return (barras + media_turma).properties(height=400)
