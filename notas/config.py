# notas/config.py — Constantes e tabelas padrão do sistema de notas
import pandas as pd


DIRETORIO_DADOS_PADRAO = "./data"
ARQUIVO_ESTUDANTES = "estudantes.json"
ARQUIVO_TURMAS = "turmas.json"


# Metas avaliadas em toda turma (pode ser sobrescrito por turma)
PESOS_METAS_PADRAO = {
    "Requirements": 1,
    "Configuration Management": 1,
    "Project Management": 1,
    "Design": 1,
    "Refactoring": 1,
    "Tests": 1,
}

# Valor numérico de cada conceito
VALORES_CONCEITOS_PADRAO = {
    "MA": 10,
    "MPA": 7,
    "MANA": 0,
}

META_FINAL = "Final"
COLUNA_CPF = "cpf"

# Média a partir da qual o aluno está dispensado da final
MEDIA_APROVACAO = 7.0

# Aluno até 10% abaixo da média da turma fica em alerta (amarelo)
FATOR_ALERTA = 0.9


# Sessões de importação expiram para não acumular planilhas em memória
TTL_SESSAO_PADRAO = 30 * 60

EXTENSOES_TABULARES = (".csv",)
EXTENSOES_PLANILHA = (".xlsx", ".xls")


def tabela_especificacao_padrao():
    """Tabela padrão Meta→Peso (somente exibição; a especificação em si é imutável)."""
    dados = [{"meta": meta, "peso": peso} for meta, peso in PESOS_METAS_PADRAO.items()]
    return pd.DataFrame(dados, columns=["meta", "peso"])
