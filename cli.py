import json
import sys
from pathlib import Path

from kundli.schemas import ComputeRequest
from kundli.routers.charts import build_chart


def main() -> None:
    in_path = Path(sys.argv[1])
    out_path = Path(sys.argv[2])
    data = json.loads(in_path.read_text(encoding="utf-8"))
    chart, meta = build_chart(ComputeRequest.model_validate(data))
    output = chart.to_dict()
    output["meta"] = meta
    out_path.write_text(json.dumps(output, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"Wrote chart {meta['chart_id']} → {out_path}")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python cli.py chart_input.json output.json")
        sys.exit(1)
    main()
