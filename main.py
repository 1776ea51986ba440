# main.py
import argparse
import os
import json
from datetime import datetime
from src.experiment import run_experiment
from src.evaluation import save_summary_results, plot_confusion_matrix, numpy_converter


def main():
    # Get Arguments
    parser = argparse.ArgumentParser(description="Run Cosine Random Forest Experiments")
    parser.add_argument("--config", type=str, default="config.yaml", help="Path to the configuration file.")
    args = parser.parse_args()
    if not os.path.exists(args.config):
        print(f"Error: Config file not found: {args.config}")
        return
    print(f"Using configuration file: {args.config}")

    # Run Experiment
    results, config_used = run_experiment(config_path=args.config)
    if not results:
        print("Experiment did not produce results.")
        return

    # Prepare for saving
    output_dir = config_used.get('output_dir', 'results')
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base_results_filename = '_'.join(res['dataset'] for res in results) + f"_{timestamp}"
    os.makedirs(output_dir, exist_ok=True)

    # Save results
    raw_results = [{k: v for k, v in res.items() if k != 'confusion_matrix'} for res in results]
    raw_results_path = os.path.join(output_dir, f"{base_results_filename}_raw.json")
    try:
        with open(raw_results_path, 'w') as f:
            json.dump({'config': config_used, 'results': raw_results}, f, indent=4, default=numpy_converter)
        print(f"Raw results saved to: {raw_results_path}")
    except Exception as e:
        print(f"Error saving raw results: {e}")

    # Save Summary
    summary = {res['dataset']: res['cross_validation'] for res in results if res['cross_validation'] is not None}
    save_summary_results(summary, config_used, base_results_filename, output_dir)

    # Generate Plots
    for res in results:
        if res['confusion_matrix'] is None:
            continue
        plot_path = os.path.join(output_dir, res['dataset'], f"{base_results_filename}_confusion.png")
        plot_confusion_matrix(res['confusion_matrix'], f"Cross-validation ({res['dataset']})", plot_path)
    print("\nExperiment finished.")


if __name__ == "__main__":
    main()
