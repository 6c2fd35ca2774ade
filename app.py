# app.py — Aplicação Streamlit (PT-BR)
# - Turmas e matrículas (persistidas em ./data em JSON)
# - Importação de notas em duas fases: upload do CSV → mapeamento de colunas
# - Lançamento manual de conceitos e da nota final
# - Status de cada aluno frente à média da turma (tabela + gráfico)
# - Integração opcional com GitHub (backup/restauração dos JSON)

import os

import pandas as pd
import streamlit as st

from notas.api import ServicoNotas
from notas.config import (
    ARQUIVO_ESTUDANTES,
    ARQUIVO_TURMAS,
    DIRETORIO_DADOS_PADRAO,
    META_FINAL,
    tabela_especificacao_padrao,
)
from notas.erros import ErroNotas
from notas.especificacao import Conceito
from notas.github_api import SincronizadorGitHub
from notas.graficos import grafico_media_vs_turma, tabela_status
from notas.modelos import Estudante
from notas.turma import Turma

_IGNORAR = "<ignorar>"

# -------------------------
# Configuração da página
# -------------------------
st.set_page_config(page_title="Notas por Conceito", layout="wide")
st.title("Notas por Conceito (Streamlit)")
st.caption("Conceitos MA / MPA / MANA por meta, média pré e pós-final e importação de planilhas.")

diretorio_dados = st.sidebar.text_input("Pasta de dados", value=DIRETORIO_DADOS_PADRAO)


def _servico() -> ServicoNotas:
    # o serviço (e as sessões de importação) sobrevive aos reruns do Streamlit
    chave = f"_servico::{os.path.abspath(diretorio_dados)}"
    if chave not in st.session_state:
        try:
            st.session_state[chave] = ServicoNotas.a_partir_do_diretorio(diretorio_dados)
        except ErroNotas as e:
            st.error(f"Falha ao carregar os dados de {diretorio_dados}: {e.mensagem}")
            st.stop()
    return st.session_state[chave]


def _salvar_tudo(servico: ServicoNotas) -> bool:
    try:
        servico.estudantes.salvar()
        servico.turmas.salvar()
    except ErroNotas as e:
        st.error(f"Falha ao salvar: {e.mensagem}")
        return False
    return True


servico = _servico()

# -------------------------
# 1) Turmas
# -------------------------
st.header("1) Turma")

turmas = servico.turmas.todas()
c1, c2 = st.columns([2, 1])
with c1:
    ids_turmas = [t.id for t in turmas]
    turma_id = st.selectbox("Turma", ids_turmas, index=0) if ids_turmas else None
    if not ids_turmas:
        st.info("Nenhuma turma cadastrada. Crie uma ao lado.")
with c2:
    with st.form("nova_turma", clear_on_submit=True):
        topico = st.text_input("Tópico", value="Engenharia de Software e Sistemas")
        ano = st.number_input("Ano", min_value=2000, max_value=2100, value=2025, step=1)
        semestre = st.select_slider("Semestre", options=[1, 2], value=1)
        if st.form_submit_button("Criar turma"):
            try:
                nova = servico.turmas.adicionar(Turma(topico, int(semestre), int(ano)))
                if _salvar_tudo(servico):
                    st.success(f"Turma {nova.id} criada.")
                    st.rerun()
            except ErroNotas as e:
                st.error(e.mensagem)

with st.expander("Pesos das metas (padrão)"):
    st.dataframe(tabela_especificacao_padrao(), use_container_width=True, hide_index=True)

if turma_id is None:
    st.stop()
turma = servico.turmas.obter(turma_id)

# -------------------------
# 2) Estudantes e matrículas
# -------------------------
st.header("2) Estudantes e matrículas")

e1, e2 = st.columns(2)
with e1:
    with st.form("novo_estudante", clear_on_submit=True):
        nome = st.text_input("Nome")
        cpf = st.text_input("CPF (11 dígitos)")
        email = st.text_input("E-mail")
        matricular_ja = st.checkbox("Matricular nesta turma", value=True)
        if st.form_submit_button("Cadastrar estudante"):
            try:
                estudante = servico.estudantes.adicionar(Estudante(nome, cpf, email))
                if matricular_ja:
                    turma.adicionar_matricula(estudante)
                if _salvar_tudo(servico):
                    st.success(f"Estudante {estudante.nome} ({estudante.cpf}) cadastrado.")
            except ErroNotas as e:
                st.error(e.mensagem)
with e2:
    fora_da_turma = [e for e in servico.estudantes.todos() if e.cpf not in turma]
    if fora_da_turma:
        rotulos = {f"{e.nome} ({e.cpf})": e for e in fora_da_turma}
        escolhido = st.selectbox("Matricular estudante já cadastrado", list(rotulos))
        if st.button("Matricular"):
            try:
                turma.adicionar_matricula(rotulos[escolhido])
                if _salvar_tudo(servico):
                    st.success(f"{escolhido} matriculado em {turma.id}.")
                    st.rerun()
            except ErroNotas as e:
                st.error(e.mensagem)
    else:
        st.caption("Todos os estudantes cadastrados já estão nesta turma.")

st.caption(f"{len(turma)} estudante(s) matriculado(s) em {turma.id}.")

# -------------------------
# 3) Importação de notas (upload → mapeamento)
# -------------------------
st.header("3) Importar notas de planilha")

chave_fase1 = f"_fase1::{turma.id}"
arquivo = st.file_uploader("Arquivo de notas (CSV)", type=["csv", "xlsx", "xls"])
if st.button("Enviar arquivo", disabled=(arquivo is None)):
    status, corpo = servico.importar_notas(turma.id, arquivo=(arquivo.name, arquivo.getvalue()))
    if status == 200:
        st.session_state[chave_fase1] = corpo
        st.success(f"Arquivo lido: {len(corpo['file_columns'])} coluna(s). Mapeie as colunas abaixo.")
    else:
        st.session_state.pop(chave_fase1, None)
        st.error(f"[{status}] {corpo['error']}")

fase1 = st.session_state.get(chave_fase1)
if fase1:
    st.subheader("Mapeamento: coluna do arquivo → meta")
    opcoes = [_IGNORAR] + list(fase1["mapping_columns"])
    mapeamento = {}
    colunas_ui = st.columns(3)
    for i, coluna in enumerate(fase1["file_columns"]):
        with colunas_ui[i % 3]:
            alvo = st.selectbox(
                coluna,
                opcoes,
                index=opcoes.index(coluna) if coluna in opcoes else 0,
                key=f"map::{fase1['session_string']}::{coluna}",
            )
        if alvo != _IGNORAR:
            mapeamento[coluna] = alvo

    if st.button("Aplicar notas", type="primary"):
        status, corpo = servico.importar_notas(
            turma.id,
            corpo={"session_string": fase1["session_string"], "mapping": mapeamento},
        )
        if status == 200:
            st.session_state.pop(chave_fase1, None)
            st.success(f"{len(corpo)} linha(s) aplicada(s).")
            st.dataframe(pd.DataFrame(corpo), use_container_width=True, hide_index=True)
        else:
            st.error(f"[{status}] {corpo['error']}")

# -------------------------
# 4) Lançamento manual
# -------------------------
st.header("4) Lançar conceito manualmente")

matriculas = turma.matriculas
if not matriculas:
    st.info("Matricule estudantes para lançar conceitos.")
else:
    rotulos_mat = {f"{m.estudante.nome} ({m.cpf})": m for m in matriculas}
    m1, m2, m3 = st.columns(3)
    with m1:
        escolha = st.selectbox("Estudante", list(rotulos_mat))
        matricula = rotulos_mat[escolha]
    with m2:
        meta = st.selectbox("Meta", list(turma.especificacao.metas) + [META_FINAL])
    with m3:
        conceito = st.selectbox("Conceito", ["<remover>"] + [c.value for c in Conceito])

    reprovado = st.checkbox("Reprovado por falta", value=matricula.reprovado_por_falta)
    if st.button("Salvar lançamento"):
        if conceito == "<remover>":
            matricula.remover_avaliacao(meta)
        else:
            matricula.adicionar_ou_atualizar_avaliacao(meta, conceito)
        matricula.reprovado_por_falta = reprovado
        matricula.recalcular_medias()
        if _salvar_tudo(servico):
            st.success("Lançamento salvo.")

    avaliacoes = pd.DataFrame([a.para_dict() for a in matricula.avaliacoes], columns=["goal", "grade"])
    st.dataframe(avaliacoes, use_container_width=True, hide_index=True)
    st.write(f"Média pré-final: **{matricula.media_pre_final}** · Média pós-final: **{matricula.media_pos_final}**")

st.divider()

# -------------------------
# 5) Status da turma
# -------------------------
st.header("5) Status dos estudantes")

status, corpo = servico.status_dos_estudantes(turma.id)
if status != 200:
    st.error(corpo["error"])
else:
    df_status = tabela_status(corpo)
    st.dataframe(df_status, use_container_width=True, hide_index=True)
    st.altair_chart(grafico_media_vs_turma(df_status), use_container_width=True)

    csv_bytes = df_status.to_csv(index=False, encoding="utf-8-sig").encode("utf-8-sig")
    st.download_button("Baixar status (CSV)", data=csv_bytes, file_name=f"status_{turma.id}.csv", mime="text/csv")

st.divider()

# -------------------------
# 6) GitHub (opcional)
# -------------------------
sincronizador = SincronizadorGitHub.de_secrets()
gh_ok, gh_err = sincronizador.credenciais_ok()
with st.expander("Backup no GitHub (opcional)"):
    if not gh_ok:
        st.info("Configure os Secrets do GitHub (GITHUB_TOKEN, REPO_OWNER, REPO_NAME, DEFAULT_BRANCH).")
    else:
        st.caption(f"Conectado a: {sincronizador.resumo()}")
        arquivos_dados = [os.path.join(diretorio_dados, n) for n in (ARQUIVO_ESTUDANTES, ARQUIVO_TURMAS)]
        g1, g2 = st.columns(2)
        with g1:
            if st.button("Enviar registros ao GitHub"):
                for caminho in arquivos_dados:
                    rel_path = os.path.relpath(caminho, start=".").replace("\\", "/")
                    ok, msg = sincronizador.enviar_arquivo(caminho, rel_path)
                    if ok:
                        st.success(f"Enviado: {rel_path}")
                    else:
                        st.error(f"Falha ao enviar {rel_path}: {msg}")
        with g2:
            if st.button("Restaurar registros do GitHub"):
                for caminho in arquivos_dados:
                    rel_path = os.path.relpath(caminho, start=".").replace("\\", "/")
                    ok, msg = sincronizador.baixar_arquivo(rel_path, caminho)
                    if ok:
                        st.success(f"Baixado: {rel_path}")
                    else:
                        st.error(f"Falha ao baixar {rel_path}: {msg}")
                st.session_state.pop(f"_servico::{os.path.abspath(diretorio_dados)}", None)
                st.rerun()
