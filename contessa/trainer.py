"""
Trainer - Addestramento evolutivo per auto-gioco
================================================
Ogni generazione gioca una partita indipendente per linea genetica; il vincitore
di ogni partita sopravvive e genera i cloni mutati della generazione successiva.
"""

from typing import List, Dict, Any, Optional
from dataclasses import dataclass, asdict, fields, replace
from pathlib import Path
from datetime import datetime
from concurrent.futures import ProcessPoolExecutor
import json
import random
import statistics
import yaml

from .engine import Agent, CoupEngine, StrategyProfile, MAX_TURNS, MIN_PLAYERS, MAX_PLAYERS


DEFAULT_CONFIG_PATH = Path(__file__).parent / "config" / "training.yaml"


@dataclass
class TrainingConfig:
    """Configurazione dell'addestramento."""
    population: int = 1000
    generations: int = 10
    players_per_game: int = 4
    max_turns: int = MAX_TURNS
    workers: int = 1
    seed: Optional[int] = None
    verbose: bool = True
    progress_every: int = 100

    def __post_init__(self):
        if self.population < 1:
            raise ValueError(f"population deve essere positiva, ricevuto {self.population}")
        if self.generations < 0:
            raise ValueError(f"generations non può essere negativo, ricevuto {self.generations}")
        if not MIN_PLAYERS <= self.players_per_game <= MAX_PLAYERS:
            raise ValueError(
                f"players_per_game deve essere tra {MIN_PLAYERS} e {MAX_PLAYERS}, "
                f"ricevuto {self.players_per_game}"
            )
        if self.max_turns < 1:
            raise ValueError(f"max_turns deve essere positivo, ricevuto {self.max_turns}")
        if self.workers < 1:
            raise ValueError(f"workers deve essere positivo, ricevuto {self.workers}")
        if self.progress_every < 1:
            raise ValueError(f"progress_every deve essere positivo, ricevuto {self.progress_every}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrainingConfig':
        """Crea la configurazione dalla sezione `training` di un dizionario."""
        section = data.get('training', {}) if data else {}
        if not isinstance(section, dict):
            raise ValueError("La sezione 'training' deve essere un dizionario")

        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ValueError(f"Chiavi di configurazione sconosciute: {sorted(unknown)}")

        return cls(**section)

    @classmethod
    def from_yaml(cls, path: Path) -> 'TrainingConfig':
        """Carica la configurazione dal file YAML."""
        with open(path, 'r', encoding='utf-8') as f:
            return cls.from_dict(yaml.safe_load(f))


@dataclass
class LineageTask:
    """Partita da giocare per una linea genetica in una generazione."""
    generation: int
    lineage: int
    seed: str
    players_per_game: int
    max_turns: int
    parent: Optional[Agent] = None


@dataclass
class LineageResult:
    """Esito della partita di una linea genetica."""
    lineage: int
    survivor: Agent
    winner_seat: int
    turns: int
    turn_limit_reached: bool


@dataclass
class GenerationStats:
    """KPI di una generazione."""
    generation: int
    games: int
    liar_cutoff_mean: float
    liar_cutoff_std: float
    lying_cutoff_mean: float
    lying_cutoff_std: float
    utilities_mean: Dict[str, float]
    avg_turns: float
    capped_games: int
    seat0_win_rate: float
    duration_sec: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def make_lineage_players(task: LineageTask, rng: random.Random) -> List[Agent]:
    """
    Prepara il tavolo di una linea genetica.

    Generazione 0: tutti i posti con parametri casuali indipendenti.
    Generazioni successive: posto 0 copia esatta del sopravvissuto, gli altri copie mutate.
    """
    n = task.players_per_game

    if task.parent is None:
        return [
            Agent(i, n, StrategyProfile.randomized(rng), random.Random(rng.getrandbits(64)))
            for i in range(n)
        ]

    players = [task.parent.clone(0, random.Random(rng.getrandbits(64)))]
    players.extend(task.parent.mutate(rng, player_id=i) for i in range(1, n))
    return players


def play_lineage_game(task: LineageTask) -> LineageResult:
    """
    Gioca la partita di una linea genetica.

    Funzione a livello di modulo per poter essere eseguita nei processi worker.
    """
    rng = random.Random(task.seed)
    players = make_lineage_players(task, rng)

    engine = CoupEngine(players, rng=random.Random(rng.getrandbits(64)), max_turns=task.max_turns)
    winner = engine.play()

    winner_seat = winner.player_id
    winner.clear()
    winner.set_id(0)

    return LineageResult(
        lineage=task.lineage,
        survivor=winner,
        winner_seat=winner_seat,
        turns=engine.state.turn_number,
        turn_limit_reached=engine.state.turn_limit_reached
    )


class Trainer:
    """Esegue l'addestramento evolutivo e calcola i KPI per generazione."""

    def __init__(self, config: Optional[TrainingConfig] = None):
        self.config = config or TrainingConfig()
        self.seed = (self.config.seed if self.config.seed is not None
                     else random.SystemRandom().randrange(2 ** 32))

        self.lineages: List[Agent] = []
        # Ultima generazione completata (-1 = nessuna)
        self.generation = -1
        self.history: List[GenerationStats] = []

    def lineage_seed(self, generation: int, lineage: int) -> str:
        """Seed indipendente e riproducibile per ogni (generazione, linea)."""
        return f"{self.seed}:{generation}:{lineage}"

    def _make_tasks(self, generation: int) -> List[LineageTask]:
        if generation == 0:
            parents = [None] * self.config.population
        else:
            parents = self.lineages

        return [
            LineageTask(
                generation=generation,
                lineage=i,
                seed=self.lineage_seed(generation, i),
                players_per_game=self.config.players_per_game,
                max_turns=self.config.max_turns,
                parent=parent
            )
            for i, parent in enumerate(parents)
        ]

    def _run_tasks(self, tasks: List[LineageTask]) -> List[LineageResult]:
        """Gioca tutte le partite della generazione; ritorna solo quando sono tutte concluse."""
        results = []

        if self.config.workers <= 1:
            for task in tasks:
                results.append(play_lineage_game(task))
                self._report_progress(len(results), len(tasks))
            return results

        chunksize = max(1, len(tasks) // (self.config.workers * 4))
        with ProcessPoolExecutor(max_workers=self.config.workers) as executor:
            for result in executor.map(play_lineage_game, tasks, chunksize=chunksize):
                results.append(result)
                self._report_progress(len(results), len(tasks))
        return results

    def _report_progress(self, done: int, total: int):
        if self.config.verbose and done % self.config.progress_every == 0:
            print(f"  {done}/{total} partite completate")

    def run_generation(self) -> GenerationStats:
        """Gioca la generazione successiva e aggiorna i sopravvissuti."""
        generation = self.generation + 1
        tasks = self._make_tasks(generation)

        if self.config.verbose:
            print(f"Generazione {generation}: {len(tasks)} partite")

        start = datetime.now()
        results = self._run_tasks(tasks)
        duration = (datetime.now() - start).total_seconds()

        results.sort(key=lambda r: r.lineage)
        self.lineages = [r.survivor for r in results]
        self.generation = generation

        stats = self.calculate_stats(generation, results, duration)
        self.history.append(stats)

        if self.config.verbose:
            print(f"  liar_cutoff medio: {stats.liar_cutoff_mean:.4f}")
            print(f"  lying_cutoff medio: {stats.lying_cutoff_mean:.4f}")
            print(f"  Turni medi: {stats.avg_turns:.1f} (partite al limite: {stats.capped_games})")

        return stats

    def train(self) -> List[StrategyProfile]:
        """
        Esegue la generazione 0 (se non già fatta) e poi le generazioni configurate.

        Returns:
            I profili di tutte le linee genetiche evolute
        """
        while self.generation < self.config.generations:
            self.run_generation()
        return self.profiles()

    def profiles(self) -> List[StrategyProfile]:
        return [agent.profile for agent in self.lineages]

    def calculate_stats(
        self,
        generation: int,
        results: List[LineageResult],
        duration_sec: float = 0.0
    ) -> GenerationStats:
        """Calcola i KPI dai sopravvissuti della generazione."""
        n = len(results)
        profiles = [r.survivor.profile for r in results]

        liar = [p.liar_cutoff for p in profiles]
        lying = [p.lying_cutoff for p in profiles]
        utilities = [p.utilities.to_dict() for p in profiles]

        return GenerationStats(
            generation=generation,
            games=n,
            liar_cutoff_mean=statistics.mean(liar),
            liar_cutoff_std=statistics.stdev(liar) if n > 1 else 0.0,
            lying_cutoff_mean=statistics.mean(lying),
            lying_cutoff_std=statistics.stdev(lying) if n > 1 else 0.0,
            utilities_mean={
                key: statistics.mean(u[key] for u in utilities)
                for key in utilities[0]
            },
            avg_turns=statistics.mean(r.turns for r in results),
            capped_games=sum(1 for r in results if r.turn_limit_reached),
            seat0_win_rate=sum(1 for r in results if r.winner_seat == 0) / n,
            duration_sec=duration_sec
        )

    # ============================================
    # CHECKPOINT
    # ============================================

    def save_checkpoint(self, path: Path):
        """Salva le linee genetiche correnti in JSON."""
        data = {
            "timestamp": datetime.now().isoformat(),
            "generation": self.generation,
            "seed": self.seed,
            "players_per_game": self.config.players_per_game,
            "lineages": [p.to_dict() for p in self.profiles()],
            "history": [s.to_dict() for s in self.history]
        }
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    @classmethod
    def from_checkpoint(cls, path: Path, config: Optional[TrainingConfig] = None) -> 'Trainer':
        """Riprende l'addestramento da un checkpoint salvato."""
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if "lineages" not in data or not data["lineages"]:
            raise ValueError(f"Checkpoint senza linee genetiche: {path}")

        if config is None:
            config = TrainingConfig(
                population=len(data["lineages"]),
                players_per_game=data.get("players_per_game", 4),
                seed=data.get("seed")
            )
        elif config.seed is None and data.get("seed") is not None:
            # Senza un seed esplicito si prosegue con quello del checkpoint
            config = replace(config, seed=data["seed"])

        trainer = cls(config)
        trainer.generation = data.get("generation", 0)
        trainer.lineages = [
            Agent(0, config.players_per_game, StrategyProfile.from_dict(d))
            for d in data["lineages"]
        ]
        trainer.history = [GenerationStats(**s) for s in data.get("history", [])]
        return trainer
