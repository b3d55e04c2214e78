"""End-to-end smoke test that exercises the public API routes."""

from __future__ import annotations

from pathlib import Path
import sys

from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from omicsnet.main import app


def main() -> None:
    with TestClient(app) as client:
        health = client.get("/health")
        health.raise_for_status()
        assert health.json()["nodes"] > 0, "Baseline network is empty"

        drugs = client.get("/drugs")
        drugs.raise_for_status()
        drug_ids = [item["id"] for item in drugs.json()["items"]]
        assert drug_ids, "Drug table is empty"

        perturbed = client.post("/perturb", json={"drug_id": drug_ids[0]})
        perturbed.raise_for_status()
        assert perturbed.json()["perturbed_nodes"] > 0, "Perturbation touched no nodes"

        examples = client.get("/query/examples").json()["items"]
        for text in examples:
            response = client.post("/query", json={"text": text, "drug_id": drug_ids[0]})
            response.raise_for_status()
            payload = response.json()
            assert 0.2 <= payload["confidence"] <= 0.9, f"Confidence out of range for {text!r}"

        summary = client.post("/summary", json={"drug_ids": drug_ids[:2]})
        summary.raise_for_status()
        assert summary.json()["cells"], "Summary returned no cells"

        missing = client.post("/perturb", json={"drug_id": "placebo"})
        assert missing.status_code == 404, "Unknown drug should return 404"


if __name__ == "__main__":
    main()
