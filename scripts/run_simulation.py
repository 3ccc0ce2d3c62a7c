#!/usr/bin/env python
"""
EPMA Simulation - Main Runner Script

Fires an electron beam at the demo sample (a thin coating on a substrate
block inside a vacuum chamber) and reports backscatter statistics.

Usage:
    python run_simulation.py
    python run_simulation.py -n 1000 -e 15
    python run_simulation.py -n 5000 -j 4 --seed 42
    python run_simulation.py --no-save --no-progress

Options:
    -n, --trajectories N   Number of primary electrons (default: config.DEFAULT_N_TRAJECTORIES)
    -e, --energy KEV       Beam energy in keV (default: 20 keV)
    --seed SEED            Seed for the random stream; omit for fresh entropy
    -j, --workers N        Worker threads for the trajectory loop (default: 1)
    --no-save              Skip the CSV exports
    --no-progress          Hide the tqdm progress bar
    --output-dir DIR       Directory that receives Data/

Without arguments the run uses config.py defaults and writes
Data/trajectory_records.csv, Data/backscatter_records.csv and
Data/backscatter_energy_histogram.csv under the project directory.
"""

from pathlib import Path
import sys

# 添加项目根目录到路径（确保可以导入 epma_simulation）
project_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_dir))

from epma_simulation.runner import run_full_simulation, main as runner_main


def main():
    """脚本入口点"""
    if len(sys.argv) > 1:
        # 如果有命令行参数，使用 argparse 处理
        runner_main()
    else:
        # 默认运行 - 输出到项目目录
        run_full_simulation(output_dir=project_dir)


if __name__ == "__main__":
    main()
