"""Test per l'addestramento evolutivo e i checkpoint."""
import json
import random

import pytest

from contessa import Trainer, TrainingConfig, play_lineage_game
from contessa.engine.agent import ActionUtilities, StrategyProfile
from contessa.engine import Agent, Card
from contessa.trainer import DEFAULT_CONFIG_PATH, LineageTask, make_lineage_players


def small_config(**overrides):
    params = dict(
        population=3,
        generations=2,
        players_per_game=3,
        max_turns=200,
        workers=1,
        seed=42,
        verbose=False,
    )
    params.update(overrides)
    return TrainingConfig(**params)


# ============================================
# CONFIGURAZIONE
# ============================================

@pytest.mark.parametrize("overrides", [
    dict(population=0),
    dict(generations=-1),
    dict(players_per_game=1),
    dict(players_per_game=7),
    dict(max_turns=0),
    dict(workers=0),
    dict(progress_every=0),
])
def test_invalid_config_is_rejected(overrides):
    with pytest.raises(ValueError):
        small_config(**overrides)


def test_bundled_config_loads():
    config = TrainingConfig.from_yaml(DEFAULT_CONFIG_PATH)

    assert config.population == 1000
    assert config.generations == 10
    assert config.players_per_game == 4


def test_config_from_yaml(tmp_path):
    path = tmp_path / "training.yaml"
    path.write_text("training:\n  population: 12\n  seed: 7\n  workers: 2\n", encoding="utf-8")

    config = TrainingConfig.from_yaml(path)

    assert config.population == 12
    assert config.seed == 7
    assert config.workers == 2
    assert config.generations == 10


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert TrainingConfig.from_yaml(path) == TrainingConfig()


def test_unknown_config_keys_are_rejected():
    with pytest.raises(ValueError):
        TrainingConfig.from_dict({"training": {"populaton": 10}})


# ============================================
# PARTITA DI UNA LINEA GENETICA
# ============================================

def test_generation_zero_survivor_is_reset_to_seat_zero():
    task = LineageTask(generation=0, lineage=5, seed="1:0:5", players_per_game=4, max_turns=300)

    result = play_lineage_game(task)

    assert result.lineage == 5
    assert 0 <= result.winner_seat < 4
    survivor = result.survivor
    assert survivor.player_id == 0
    assert survivor.hand == [Card.NONE, Card.NONE]
    assert survivor.coins == 2
    assert survivor.perceived_hands == []


def test_later_generations_descend_from_parent():
    parent = Agent(0, 3, StrategyProfile(0.4, 0.6, ActionUtilities(*[0.3] * 7)))
    task = LineageTask(
        generation=1, lineage=0, seed="1:1:0", players_per_game=3, max_turns=300, parent=parent
    )

    survivor = play_lineage_game(task).survivor.profile

    assert abs(survivor.liar_cutoff - 0.4) <= 0.01
    assert abs(survivor.lying_cutoff - 0.6) <= 0.01
    for value in survivor.utilities.to_dict().values():
        assert 0.3 <= value < 0.4


def test_lineage_table_seats_exact_clone_then_mutants():
    parent = Agent(2, 4, StrategyProfile(0.4, 0.6, ActionUtilities(*[0.3] * 7)))
    task = LineageTask(
        generation=3, lineage=1, seed="1:3:1", players_per_game=4, max_turns=300, parent=parent
    )

    players = make_lineage_players(task, random.Random(task.seed))

    assert [p.player_id for p in players] == [0, 1, 2, 3]
    assert players[0].profile == parent.profile
    assert players[0].profile is not parent.profile
    for mutant in players[1:]:
        profile = mutant.profile
        assert profile != parent.profile
        assert abs(profile.liar_cutoff - 0.4) <= 0.01
        assert abs(profile.lying_cutoff - 0.6) <= 0.01
        for value in profile.utilities.to_dict().values():
            assert 0.3 <= value < 0.4
    assert players[1].profile != players[2].profile


def test_generation_zero_table_has_independent_random_profiles():
    task = LineageTask(generation=0, lineage=0, seed="1:0:0", players_per_game=3, max_turns=300)

    players = make_lineage_players(task, random.Random(task.seed))

    assert [p.player_id for p in players] == [0, 1, 2]
    profiles = [p.profile.to_dict() for p in players]
    assert profiles[0] != profiles[1] != profiles[2]
    for player in players:
        assert 0.0 <= player.liar_cutoff < 1.0
        assert 0.0 <= player.lying_cutoff < 1.0


def test_same_seed_same_lineage_game():
    task = LineageTask(generation=0, lineage=0, seed="9:0:0", players_per_game=3, max_turns=300)

    a, b = play_lineage_game(task), play_lineage_game(task)

    assert a.winner_seat == b.winner_seat
    assert a.turns == b.turns
    assert a.survivor.profile == b.survivor.profile


# ============================================
# ADDESTRAMENTO
# ============================================

def test_train_runs_generation_zero_plus_configured_generations():
    trainer = Trainer(small_config())

    profiles = trainer.train()

    assert len(profiles) == 3
    assert trainer.generation == 2
    assert [s.generation for s in trainer.history] == [0, 1, 2]
    assert all(s.games == 3 for s in trainer.history)
    for stats in trainer.history:
        assert 0.0 <= stats.seat0_win_rate <= 1.0
        assert set(stats.utilities_mean) == {
            "income", "foreignAid", "coup", "tax", "assassinate", "exchange", "steal"
        }


def test_training_is_reproducible_with_same_seed():
    first = [p.to_dict() for p in Trainer(small_config()).train()]
    second = [p.to_dict() for p in Trainer(small_config()).train()]

    assert first == second


def test_zero_generations_only_plays_generation_zero():
    trainer = Trainer(small_config(generations=0))
    trainer.train()

    assert trainer.generation == 0
    assert len(trainer.history) == 1


def test_worker_pool_matches_sequential_run():
    sequential = Trainer(small_config(population=4, generations=1)).train()
    parallel = Trainer(small_config(population=4, generations=1, workers=2)).train()

    assert [p.to_dict() for p in parallel] == [p.to_dict() for p in sequential]


# ============================================
# CHECKPOINT
# ============================================

def test_checkpoint_round_trip(tmp_path):
    trainer = Trainer(small_config(generations=1))
    trainer.train()
    path = tmp_path / "checkpoint.json"

    trainer.save_checkpoint(path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["generation"] == 1
    assert data["seed"] == 42
    assert len(data["lineages"]) == 3
    assert set(data["lineages"][0]) == {"liarCutoff", "lyingCutoff", "utilities"}
    assert len(data["history"]) == 2

    restored = Trainer.from_checkpoint(path)
    assert restored.generation == 1
    assert restored.seed == 42
    assert restored.profiles() == trainer.profiles()
    assert restored.history == trainer.history


def test_resume_keeps_checkpoint_seed_and_history(tmp_path):
    trainer = Trainer(small_config(generations=1))
    trainer.train()
    path = tmp_path / "checkpoint.json"
    trainer.save_checkpoint(path)

    restored = Trainer.from_checkpoint(path, small_config(generations=2, seed=None))
    restored.train()
    restored.save_checkpoint(path)

    assert restored.seed == 42
    assert restored.generation == 2
    assert [s.generation for s in restored.history] == [0, 1, 2]
    assert restored.history[:2] == trainer.history

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["seed"] == 42
    assert [s["generation"] for s in data["history"]] == [0, 1, 2]


def test_explicit_seed_overrides_checkpoint_seed(tmp_path):
    trainer = Trainer(small_config(generations=0))
    trainer.train()
    path = tmp_path / "checkpoint.json"
    trainer.save_checkpoint(path)

    restored = Trainer.from_checkpoint(path, small_config(seed=7))

    assert restored.seed == 7


def test_resumed_training_matches_uninterrupted_run(tmp_path):
    uninterrupted = Trainer(small_config(generations=2)).train()

    partial = Trainer(small_config(generations=1))
    partial.train()
    path = tmp_path / "checkpoint.json"
    partial.save_checkpoint(path)
    resumed = Trainer.from_checkpoint(path, small_config(generations=2, seed=None)).train()

    assert [p.to_dict() for p in resumed] == [p.to_dict() for p in uninterrupted]


def test_checkpoint_without_lineages_is_rejected(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"generation": 3, "lineages": []}), encoding="utf-8")

    with pytest.raises(ValueError):
        Trainer.from_checkpoint(path)
