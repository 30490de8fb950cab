"""FastAPI service that checks an uploaded repo archive or inline sources."""

from __future__ import annotations

import argparse
import json
import zipfile
from pathlib import Path
from tempfile import TemporaryDirectory
from urllib.parse import urlparse

import httpx
from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import ConfigError, resolve_config
from .log import get_logger
from .pipeline import AnalysisResult, analyze_paths, analyze_sources
from .report import format_json
from .storage import graph_to_dict

logger = get_logger(__name__)

app = FastAPI(title="deprecheck API")


class SourceRequest(BaseModel):
    files: dict[str, str] = Field(description="Source text keyed by relative path")
    severity: str | None = None
    include_graph: bool = False


def _extract_zip_bytes(zip_bytes: bytes, target_dir: Path) -> Path:
    if not zip_bytes:
        raise HTTPException(status_code=400, detail="Empty archive.")

    archive_path = target_dir / "repo.zip"
    archive_path.write_bytes(zip_bytes)

    try:
        with zipfile.ZipFile(archive_path) as archive:
            archive.extractall(target_dir / "repo")
    except zipfile.BadZipFile as exc:
        raise HTTPException(status_code=400, detail="Invalid zip archive.") from exc

    extracted_root = target_dir / "repo"
    entries = list(extracted_root.iterdir())
    # GitHub archives wrap everything in a single "<repo>-<branch>" directory
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return extracted_root


def _archive_urls(repo_url: str) -> list[str]:
    parsed = urlparse(repo_url)
    if parsed.scheme not in {"http", "https"}:
        raise HTTPException(status_code=400, detail="repo_url must be http/https.")

    if parsed.path.lower().endswith(".zip"):
        return [repo_url]

    if parsed.netloc.lower() not in {"github.com", "www.github.com"}:
        raise HTTPException(
            status_code=400,
            detail="repo_url must be a GitHub repo URL or direct zip link.",
        )

    path_parts = [part for part in parsed.path.split("/") if part]
    if len(path_parts) < 2:
        raise HTTPException(status_code=400, detail="repo_url must name an owner and a repo.")

    owner = path_parts[0]
    repo = path_parts[1].removesuffix(".git")
    archive = f"https://github.com/{owner}/{repo}/archive/refs/heads"

    if "tree" in path_parts:
        index = path_parts.index("tree")
        if index + 1 < len(path_parts):
            return [f"{archive}/{path_parts[index + 1]}.zip"]

    branch = _default_branch(owner, repo)
    if branch:
        return [f"{archive}/{branch}.zip"]
    return [f"{archive}/main.zip", f"{archive}/master.zip"]


def _default_branch(owner: str, repo: str) -> str | None:
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": "deprecheck-api",
    }
    try:
        response = httpx.get(f"https://api.github.com/repos/{owner}/{repo}", headers=headers, timeout=20.0)
    except httpx.RequestError as exc:
        logger.info("GitHub API unreachable for %s/%s: %s", owner, repo, exc)
        return None
    if response.status_code != 200:
        return None
    try:
        payload = response.json()
    except ValueError:
        return None
    branch = payload.get("default_branch") if isinstance(payload, dict) else None
    return branch if isinstance(branch, str) and branch else None


def _download_archive(repo_url: str) -> bytes:
    candidates = _archive_urls(repo_url)
    last_status = None
    for url in candidates:
        try:
            response = httpx.get(url, timeout=60.0, follow_redirects=True)
        except httpx.RequestError as exc:
            raise HTTPException(status_code=502, detail=f"Failed to reach {url}.") from exc
        if response.status_code == 200:
            return response.content
        last_status = response.status_code
        if response.status_code != 404:
            break

    raise HTTPException(
        status_code=502,
        detail=f"Failed to download repo zip (status {last_status}). Tried: {', '.join(candidates)}",
    )


def _response(result: AnalysisResult, root: str | Path | None, include_graph: bool) -> JSONResponse:
    content = json.loads(format_json(result.diagnostics, root=root))
    content["files"] = len(result.files)
    if include_graph:
        content["graph"] = graph_to_dict(result.symbols.graph)
    return JSONResponse(content=content)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/analyze")
def analyze_archive(
    file: UploadFile | None = File(default=None),
    repo_url: str | None = Query(default=None),
    severity: str | None = Query(default=None),
    include_graph: bool = Query(default=False),
) -> JSONResponse:
    if file is None and not repo_url:
        raise HTTPException(status_code=400, detail="Provide either a zip file upload or repo_url.")

    with TemporaryDirectory() as temp_dir:
        if repo_url:
            zip_bytes = _download_archive(repo_url)
        else:
            if not file.filename or not file.filename.lower().endswith(".zip"):
                raise HTTPException(status_code=400, detail="Upload a .zip archive.")
            zip_bytes = file.file.read()
        root = _extract_zip_bytes(zip_bytes, Path(temp_dir))
        try:
            config = resolve_config(root, severity=severity)
        except ConfigError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        result = analyze_paths([root], config)
        return _response(result, root, include_graph)


@app.post("/analyze/source")
def analyze_source(request: SourceRequest) -> JSONResponse:
    if not request.files:
        raise HTTPException(status_code=400, detail="No files given.")
    try:
        config = resolve_config(severity=request.severity)
    except ConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    result = analyze_sources(request.files, config)
    return _response(result, None, request.include_graph)


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the deprecheck API server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind host")
    parser.add_argument("--port", type=int, default=9000, help="Bind port")
    args = parser.parse_args()

    import uvicorn

    uvicorn.run("deprecheck.api:app", host=args.host, port=args.port, reload=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
