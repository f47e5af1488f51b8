#!/usr/bin/env python3
"""
演示验收：在进程内用 FastAPI TestClient 走一遍「健康检查 → AI 分析封禁 → 封禁查询 → 手动举报 → 管理员核实 → 相似检查 → 我的警告」。
不依赖已启动的 uvicorn，直接测试 app；使用内存存储与 stub 认证。

用法：uv run python scripts/verify_demo.py
结果会打印到终端，并写入项目根目录 verify_demo_result.txt。
"""
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

ADMIN_TOKEN = "demo-admin"
os.environ["JOBSHIELD_STORE"] = "memory"
os.environ.pop("JOBSHIELD_AUTH_URL", None)
os.environ["JOBSHIELD_ADMIN_TOKENS"] = ADMIN_TOKEN

try:
    from fastapi.testclient import TestClient
    from jobshield.api.app import app
except Exception as e:
    (ROOT / "verify_demo_result.txt").write_text(f"导入失败: {e}", encoding="utf-8")
    raise

client = TestClient(app)
USER = {"Authorization": "Bearer demo-user"}
ADMIN = {"Authorization": f"Bearer {ADMIN_TOKEN}"}

SCAM_JOB = {
    "title": "Data Entry - No Experience!",
    "description": (
        "Earn $5000 per week working from home! Wire transfer fee required to start, "
        "send your social security number to hr@gmail.com"
    ),
    "company": "Quick Cash LLC",
    "url": "https://quick-cash.tk/apply",
}


def main():
    out_path = ROOT / "verify_demo_result.txt"
    lines = []

    def log(msg: str):
        lines.append(msg)
        print(msg)

    ok = 0
    fail = 0

    def expect(cond: bool, detail: str):
        nonlocal ok, fail
        if cond:
            log("   OK: " + detail)
            ok += 1
        else:
            log("   失败: " + detail)
            fail += 1

    # 1. 健康检查
    log("1. GET /health ...")
    r = client.get("/health")
    expect(r.status_code == 200 and r.json().get("service") == "jobshield", str(r.json()))

    # 2. AI 分析：明显诈骗应直接封禁
    log("2. POST /scams/analyze-job ...")
    r = client.post("/scams/analyze-job", json={"jobData": SCAM_JOB}, headers=USER)
    data = r.json().get("data") or {}
    expect(data.get("action") == "banned", f"action={data.get('action')} confidence={(data.get('analysis') or {}).get('confidence')}")

    # 3. 封禁查询
    log("3. POST /scams/check-banned ...")
    r = client.post("/scams/check-banned", json={"company": "quick cash llc", "url": SCAM_JOB["url"]}, headers=USER)
    data = r.json().get("data") or {}
    expect(data.get("isBanned") is True, f"reasons={data.get('reasons')}")

    # 4. 手动举报 + 管理员核实
    log("4. POST /scams/report → PUT /scams/{id}/verify ...")
    r = client.post(
        "/scams/report",
        json={"title": "Package Forwarder", "companyName": "Global Parcel Services", "scamType": "fake_position"},
        headers=USER,
    )
    scam_id = (r.json().get("data") or {}).get("id")
    expect(bool(scam_id), f"scam_id={scam_id}")
    r = client.put(f"/scams/{scam_id}/verify", headers=ADMIN)
    expect(r.status_code == 200 and r.json()["data"]["status"] == "VERIFIED", f"status={r.status_code}")

    # 5. 相似检查与我的警告
    log("5. POST /scams/check → GET /scams/my-warnings ...")
    r = client.post("/scams/check", json={"title": "Forwarder", "companyName": "global parcel"}, headers=USER)
    data = r.json().get("data") or {}
    expect(data.get("riskLevel") == "HIGH", f"riskLevel={data.get('riskLevel')}")
    r = client.get("/scams/my-warnings", headers=USER)
    expect(len(r.json().get("data") or []) == 1, f"warnings={len(r.json().get('data') or [])}")

    log("")
    log(f"通过 {ok} 项，失败 {fail} 项")
    out_path.write_text("\n".join(lines), encoding="utf-8")
    return 0 if fail == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
