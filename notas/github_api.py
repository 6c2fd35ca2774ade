# notas/github_api.py — Backup/restauração dos registros JSON num repositório GitHub
import base64
import json
import os
from typing import Any, Mapping, Optional, Tuple
from urllib.parse import quote

import requests
import streamlit as st

_API = "https://api.github.com"


def _ler_secret(secrets: Mapping[str, Any], nome: str, padrao=None):
    # Suporta chaves planas ou bloco [github] em secrets.toml
    if nome in secrets:
        return secrets.get(nome, padrao)
    if "github" in secrets and nome in secrets["github"]:
        return secrets["github"].get(nome, padrao)
    return padrao


class SincronizadorGitHub:
    """Envia e baixa arquivos pela contents API. Toda operação devolve (ok, mensagem)."""

    def __init__(self, token: Optional[str], owner: Optional[str], repo: Optional[str], branch: str = "main"):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.branch = branch or "main"

    @classmethod
    def de_secrets(cls, secrets: Optional[Mapping[str, Any]] = None) -> "SincronizadorGitHub":
        if secrets is None:
            secrets = st.secrets
        return cls(
            _ler_secret(secrets, "GITHUB_TOKEN"),
            _ler_secret(secrets, "REPO_OWNER"),
            _ler_secret(secrets, "REPO_NAME"),
            _ler_secret(secrets, "DEFAULT_BRANCH", "main"),
        )

    # -------- Credenciais --------
    def credenciais_ok(self) -> Tuple[bool, str]:
        if not self.token:
            return False, "GITHUB_TOKEN ausente"
        if not self.owner or not self.repo:
            return False, "REPO_OWNER ou REPO_NAME ausentes"
        return True, ""

    def resumo(self) -> str:
        if not self.owner or not self.repo:
            return "repositório não configurado"
        return f"{self.owner}/{self.repo}@{self.branch}"

    def _headers(self):
        return {
            "Authorization": f"token {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _url(self, caminho_rel: str) -> str:
        return f"{_API}/repos/{self.owner}/{self.repo}/contents/{quote(caminho_rel)}"

    # -------- SHA / Download / Upload --------
    def _sha(self, caminho_rel: str) -> Tuple[Optional[str], Optional[str]]:
        r = requests.get(self._url(caminho_rel), headers=self._headers(), params={"ref": self.branch}, timeout=20)
        if r.status_code == 200:
            return r.json().get("sha"), None
        if r.status_code == 404:
            return None, "Arquivo não encontrado no repositório"
        return None, f"Falha ao obter SHA ({r.status_code}): {r.text}"

    def enviar_arquivo(self, caminho_local: str, caminho_rel: Optional[str] = None, mensagem: Optional[str] = None):
        """Envia/atualiza um arquivo local no repo (PUT contents API)."""
        if not os.path.isfile(caminho_local):
            return False, f"Arquivo local não encontrado: {caminho_local}"
        ok, err = self.credenciais_ok()
        if not ok:
            return False, err
        if caminho_rel is None:
            caminho_rel = os.path.normpath(caminho_local).replace("\\", "/")

        with open(caminho_local, "rb") as f:
            conteudo_b64 = base64.b64encode(f.read()).decode("utf-8")

        sha, _ = self._sha(caminho_rel)  # se existir, faz update
        payload = {
            "message": mensagem or f"chore: backup de {caminho_rel} via app",
            "content": conteudo_b64,
            "branch": self.branch,
        }
        if sha:
            payload["sha"] = sha

        r = requests.put(self._url(caminho_rel), headers=self._headers(), data=json.dumps(payload), timeout=30)
        if r.status_code in (200, 201):
            return True, "OK"
        return False, f"Falha ao enviar ({r.status_code}): {r.text}"

    def baixar_arquivo(self, caminho_rel: str, caminho_local: str):
        """Baixa um arquivo (base64) do repo para o caminho local."""
        ok, err = self.credenciais_ok()
        if not ok:
            return False, err
        r = requests.get(self._url(caminho_rel), headers=self._headers(), params={"ref": self.branch}, timeout=30)
        if r.status_code != 200:
            return False, f"Falha ao obter conteúdo ({r.status_code}): {r.text}"
        dados = r.json()
        if dados.get("encoding") != "base64":
            return False, "Conteúdo não está em base64"
        try:
            bruto = base64.b64decode(dados.get("content", ""))
        except ValueError as e:
            return False, f"Erro ao decodificar base64: {e}"
        pasta = os.path.dirname(caminho_local)
        if pasta:
            os.makedirs(pasta, exist_ok=True)
        with open(caminho_local, "wb") as f:
            f.write(bruto)
        return True, "OK"
