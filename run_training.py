"""
Contessa - Training CLI
=======================
Script principale per eseguire l'addestramento evolutivo da linea di comando.
"""

import argparse
from pathlib import Path
from dataclasses import replace

from contessa import Trainer, TrainingConfig
from contessa.trainer import DEFAULT_CONFIG_PATH


def main():
    parser = argparse.ArgumentParser(description="Contessa - addestramento evolutivo per Coup")

    parser.add_argument(
        "--config", "-c",
        default=str(DEFAULT_CONFIG_PATH),
        help="File YAML di configurazione (default: contessa/config/training.yaml)"
    )
    parser.add_argument(
        "--population", "-n",
        type=int,
        default=None,
        help="Numero di linee genetiche"
    )
    parser.add_argument(
        "--generations", "-g",
        type=int,
        default=None,
        help="Generazioni successive alla generazione 0"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Processi worker"
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Seed per riproducibilità"
    )
    parser.add_argument(
        "--resume", "-r",
        default=None,
        help="Checkpoint JSON da cui riprendere"
    )
    parser.add_argument(
        "--output", "-o",
        default="checkpoint.json",
        help="File JSON in cui salvare le linee evolute"
    )

    args = parser.parse_args()

    config_path = Path(args.config)
    config = TrainingConfig.from_yaml(config_path) if config_path.exists() else TrainingConfig()

    overrides = {
        key: value for key, value in (
            ("population", args.population),
            ("generations", args.generations),
            ("workers", args.workers),
            ("seed", args.seed),
        )
        if value is not None
    }
    config = replace(config, **overrides)

    if args.resume:
        trainer = Trainer.from_checkpoint(Path(args.resume), config)
    else:
        trainer = Trainer(config)

    print(f"\n{'='*60}")
    print("CONTESSA - ADDESTRAMENTO EVOLUTIVO")
    print(f"{'='*60}")
    print(f"Linee genetiche: {config.population}")
    print(f"Generazioni: {config.generations}")
    print(f"Giocatori per partita: {config.players_per_game}")
    print(f"Worker: {config.workers}")
    print(f"Seed: {trainer.seed}")
    print(f"{'='*60}\n")

    profiles = trainer.train()
    trainer.save_checkpoint(Path(args.output))

    last = trainer.history[-1] if trainer.history else None
    if last:
        print(f"\n{'='*60}")
        print("RISULTATI")
        print(f"{'='*60}")
        print(f"  liar_cutoff: {last.liar_cutoff_mean:.4f} ± {last.liar_cutoff_std:.4f}")
        print(f"  lying_cutoff: {last.lying_cutoff_mean:.4f} ± {last.lying_cutoff_std:.4f}")
        print(f"  Vittorie del clone non mutato: {last.seat0_win_rate*100:.1f}%")
        for key, value in last.utilities_mean.items():
            print(f"  utilità {key}: {value:.4f}")

    print(f"\n✅ {len(profiles)} linee salvate in: {args.output}")
    print(f"\n{'='*60}\n")


if __name__ == "__main__":
    main()
