import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

from types import SimpleNamespace

import pygame
import pytest

from formulac.camera import Camera
from formulac.common import (
    GREEN,
    PURPLE,
    RED,
    WHITE,
    Checkpoint,
    GameState,
    MapInfo,
    Mode,
    Screen,
    Status,
    stringify_time,
)
from formulac.frames import CarFrame, write_frames
from formulac.game import (
    BestLapMessage,
    Game,
    nearest_reference_index,
    ranking_compare,
    reference_frame,
)
from formulac.standings import CarList

MAP_W, MAP_H = 60, 40
LEFT_COLOR = (200, 30, 30)
RIGHT_COLOR = (30, 30, 200)


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class Keys:
    def __init__(self, *pressed):
        self.pressed = set(pressed)

    def __getitem__(self, key):
        return key in self.pressed


@pytest.fixture
def track_map(tmp_path):
    mask = pygame.Surface((MAP_W, MAP_H))
    mask.fill((127, 127, 127))
    pygame.image.save(mask, str(tmp_path / "mask.bmp"))
    background = pygame.Surface((MAP_W, MAP_H))
    background.fill(LEFT_COLOR, pygame.Rect(0, 0, MAP_W // 2, MAP_H))
    background.fill(RIGHT_COLOR, pygame.Rect(MAP_W // 2, 0, MAP_W // 2, MAP_H))
    pygame.image.save(background, str(tmp_path / "background.bmp"))
    return MapInfo(
        name="Test",
        background_path=str(tmp_path / "background.bmp"),
        mask_path=str(tmp_path / "mask.bmp"),
        minimap_path=str(tmp_path / "background.bmp"),
        start_positions=((30.0, 20.0), (32.0, 20.0)),
        start_angle=0.0,
        max_laps=2,
        checkpoints=(Checkpoint((30.0, 20.0), 0.0), Checkpoint((50.0, 20.0), 0.0)),
    )


def make_game(tmp_path, track_map, mode=Mode.SINGLEPLAYER, clock=None):
    state = GameState(mode=mode)
    game = Game(state, 800, 600, clock=clock or FakeClock(),
                maps=(track_map,), reference_dir=tmp_path, ghost_dir=tmp_path)
    game.setup()
    return game


REFERENCE = [CarFrame((10.0, 20.0)), CarFrame((30.0, 20.0)), CarFrame((50.0, 20.0))]


def test_nearest_reference_index_picks_closest():
    assert nearest_reference_index(REFERENCE, (31.0, 21.0)) == 1
    assert nearest_reference_index(REFERENCE, (100.0, 20.0)) == 2


def test_nearest_reference_index_empty_and_ties():
    assert nearest_reference_index([], (5.0, 5.0)) == 0
    assert nearest_reference_index(REFERENCE, (20.0, 20.0)) == 0


def test_reference_frame_not_started_is_zero():
    car = SimpleNamespace(lap=-1, ghost=False, pos=(50.0, 20.0))
    assert reference_frame(car, REFERENCE, Mode.SINGLEPLAYER) == 0


def test_reference_frame_ghost_counts_before_start():
    ghost = SimpleNamespace(lap=-1, ghost=True, pos=(50.0, 20.0))
    assert reference_frame(ghost, REFERENCE, Mode.SINGLEPLAYER) == 2


def test_reference_frame_splitscreen_adds_laps():
    car = SimpleNamespace(lap=2, ghost=False, pos=(30.0, 20.0))
    single = reference_frame(car, REFERENCE, Mode.SINGLEPLAYER)
    split = reference_frame(car, REFERENCE, Mode.SPLITSCREEN)
    assert split - single == len(REFERENCE) * car.lap


def test_ranking_compare_orders_leader_first():
    behind = SimpleNamespace(id=1, ref_frame=3)
    ahead = SimpleNamespace(id=2, ref_frame=7)
    assert ranking_compare(behind, ahead) > 0
    assert ranking_compare(ahead, behind) < 0

    cars = CarList()
    for car_id, frame in [(1, 4), (2, 9), (3, 1), (4, 6)]:
        cars.add(SimpleNamespace(id=car_id, ref_frame=frame))
    cars.sort(ranking_compare)
    frames = [car.ref_frame for car in cars]
    assert frames == sorted(frames, reverse=True)


def test_best_lap_message_hidden_after_deadline():
    message = BestLapMessage()
    assert message.update(10.0, 5.0) is False
    assert message.active is False


def test_best_lap_message_blinks_then_resets():
    message = BestLapMessage()
    shown = [message.update(0.5 * step, 1000.0) for step in range(1, 22)]
    assert shown[:20] == [True, False] * 10
    assert shown[20] is False
    assert message.count == 0


def test_best_lap_message_waits_for_interval():
    message = BestLapMessage()
    assert message.update(0.5, 100.0) is True
    assert message.update(0.6, 100.0) is True
    assert message.count == 1


def test_load_singleplayer(tmp_path, track_map):
    game = make_game(tmp_path, track_map)
    game.load()
    assert game.state.screen == Screen.GAME
    assert game.state.status == Status.STARTED
    assert game.state.max_laps == track_map.max_laps
    assert len(game.cars) == 2
    assert game.cars.get(1).name == "Player 1"
    assert game.cars.get(99).ghost is True
    assert game.best_lap_time_player is game.cars.get(99)
    assert game.track_hud.get_size() == (800 // 4, 600 // 4)
    assert (game.map_width, game.map_height) == (MAP_W, MAP_H)
    assert game.reference == []


def test_load_reads_reference_lap(tmp_path, track_map):
    write_frames(tmp_path / "Test_reference.bin", REFERENCE)
    game = make_game(tmp_path, track_map)
    game.load()
    assert game.reference == REFERENCE


def test_load_splitscreen(tmp_path, track_map):
    game = make_game(tmp_path, track_map, mode=Mode.SPLITSCREEN)
    game.load()
    assert game.state.status == Status.COUNTDOWN
    assert {car.id for car in game.cars} == {1, 2}
    assert game.best_lap_time_player is game.cars.get(1)
    assert game.camera2.offset[0] > game.camera1.offset[0]


def test_update_quit_returns_to_menu(tmp_path, track_map):
    game = make_game(tmp_path, track_map)
    game.load()
    game.update(Keys(pygame.K_q), 100.0)
    assert game.state.screen == Screen.MENU
    assert len(game.cars) == 0
    assert game.session is None
    assert game.track is None


def test_update_after_race_end_returns_to_menu(tmp_path, track_map):
    game = make_game(tmp_path, track_map)
    game.load()
    game.state.status = Status.ENDED
    game.update(Keys(), 100.0)
    assert game.state.screen == Screen.MENU
    assert len(game.cars) == 0


def test_update_without_race_raises(tmp_path, track_map):
    game = make_game(tmp_path, track_map)
    with pytest.raises(RuntimeError):
        game.update(Keys(), 100.0)


def test_update_drives_splitscreen_countdown(tmp_path, track_map):
    clock = FakeClock(100.0)
    game = make_game(tmp_path, track_map, mode=Mode.SPLITSCREEN, clock=clock)
    game.load()
    game.update(Keys(), 100.0)
    assert game.session.semaphore.count == 0
    game.update(Keys(), 101.0)
    assert game.session.semaphore.count == 1
    assert game.state.screen == Screen.GAME


def test_update_best_lap_car(tmp_path, track_map):
    game = make_game(tmp_path, track_map)
    game.load()
    player = game.cars.get(1)

    player.lap = 0
    player.change_lap_flag = True
    player.last_lap_time = 50.0
    game.update_best_lap_car(player, 200.0)
    assert game.best_lap_time_player is game.cars.get(99)

    player.lap = 1
    game.update_best_lap_car(player, 200.0)
    assert game.best_lap_time_player is player
    assert game.best_lap_until == 200.0 + 3.0


def test_update_best_lap_car_needs_lap_change(tmp_path, track_map):
    game = make_game(tmp_path, track_map)
    game.load()
    player = game.cars.get(1)
    player.lap = 2
    player.change_lap_flag = False
    player.last_lap_time = 1.0
    game.update_best_lap_car(player, 200.0)
    assert game.best_lap_time_player is game.cars.get(99)


def test_update_ranking_sorts_and_throttles(tmp_path, track_map):
    write_frames(tmp_path / "Test_reference.bin", REFERENCE)
    game = make_game(tmp_path, track_map)
    game.load()
    player = game.cars.get(1)
    ghost = game.cars.get(99)
    player.lap = 0
    player.pos = (10.0, 20.0)
    ghost.pos = (50.0, 20.0)

    game.update_ranking(200.0)
    assert [car.id for car in game.cars] == [99, 1]
    assert (ghost.ref_frame, player.ref_frame) == (2, 0)

    player.pos = (50.0, 20.0)
    game.update_ranking(200.1)
    assert player.ref_frame == 0
    game.update_ranking(201.0)
    assert player.ref_frame == 2


def test_draw_laps(tmp_path, track_map):
    surface = pygame.Surface((800, 600))
    game = make_game(tmp_path, track_map)
    game.load()
    player = game.cars.get(1)
    player.lap = 0
    assert game.draw_laps(surface, player, 0, 0) == "Volta 1"


def test_draw_laps_splitscreen(tmp_path, track_map):
    surface = pygame.Surface((800, 600))
    game = make_game(tmp_path, track_map, mode=Mode.SPLITSCREEN)
    game.load()
    player = game.cars.get(1)
    player.lap = 0
    assert game.draw_laps(surface, player, 0, 0) == f"Volta 1/{track_map.max_laps}"
    player.lap = track_map.max_laps
    assert game.draw_laps(surface, player, 0, 0) is None


def test_draw_lap_time_colours(tmp_path, track_map):
    surface = pygame.Surface((800, 600))
    clock = FakeClock(100.0)
    game = make_game(tmp_path, track_map, clock=clock)
    game.load()
    player = game.cars.get(1)
    ghost = game.cars.get(99)

    assert game.draw_lap_time(surface, player, 0, 0) == (stringify_time(0.0), WHITE)

    ghost.ghost_active = True
    ghost.ref_frame, player.ref_frame = 5, 2
    assert game.draw_lap_time(surface, player, 0, 0)[1] == RED
    ghost.ref_frame, player.ref_frame = 2, 5
    assert game.draw_lap_time(surface, player, 0, 0)[1] == GREEN

    ghost.best_lap_time = 65.5
    game.best_lap_until = clock.now + 1.0
    assert game.draw_lap_time(surface, player, 0, 0) == (stringify_time(65.5), PURPLE)


def test_draw_player_list_rows(tmp_path, track_map):
    surface = pygame.Surface((800, 600))
    game = make_game(tmp_path, track_map)
    game.load()
    player = game.cars.get(1)
    ghost = game.cars.get(99)

    assert game.draw_player_list(surface, player, 0, 0) == [(1, "Player 1", "-:--.---")]

    ghost.ghost_active = True
    ghost.ref_frame, player.ref_frame = 120, 60
    game.cars.sort(ranking_compare)
    rows = game.draw_player_list(surface, player, 0, 0)
    assert rows == [
        (1, "Melhor Volta", "-:--.---"),
        (2, "Player 1", stringify_time(1.0, True)),
    ]


def test_draw_player_in_minimap_corners(tmp_path, track_map):
    surface = pygame.Surface((800, 600))
    game = make_game(tmp_path, track_map)
    game.load()
    player = game.cars.get(1)
    player.pos = (0.0, 0.0)
    assert game.draw_player_in_minimap(surface, player) == pytest.approx(game.minimap_pos)
    player.pos = (float(MAP_W), float(MAP_H))
    hud_w, hud_h = game.track_hud.get_size()
    expected = (game.minimap_pos[0] + hud_w, game.minimap_pos[1] + hud_h)
    assert game.draw_player_in_minimap(surface, player) == pytest.approx(expected)


def test_draw_speedometer_at_rest(tmp_path, track_map):
    surface = pygame.Surface((800, 600))
    game = make_game(tmp_path, track_map)
    game.load()
    assert game.draw_speedometer(surface, game.cars.get(1), 400, 300) == "0"


def test_draw_player_debug_lines(tmp_path, track_map):
    surface = pygame.Surface((800, 600))
    game = make_game(tmp_path, track_map)
    game.load()
    player = game.cars.get(1)
    lines = game.draw_player_debug(surface, player, 0, 0)
    assert lines[0] == "Current car debug"
    assert lines[1] == f"ID: {player.id}"
    assert lines[2] == f"Lap: {player.lap}"
    assert lines[-1].startswith("GameBestLapTime:")


def test_draw_best_lap_message_requires_recent_lap(tmp_path, track_map):
    surface = pygame.Surface((800, 600))
    clock = FakeClock(100.0)
    game = make_game(tmp_path, track_map, clock=clock)
    game.load()
    assert game.draw_best_lap_message(surface, 0, 0) is False
    game.best_lap_until = clock.now + 3.0
    assert game.draw_best_lap_message(surface, 0, 0) is True


def test_draw_map_places_background(tmp_path, track_map):
    game = make_game(tmp_path, track_map)
    game.load()
    game.cars.clear()
    surface = pygame.Surface((200, 200))
    camera = Camera(target=(30.0, 20.0), offset=(100.0, 100.0), rotation=0.0, zoom=1.0)
    game.draw_map(surface, camera)
    assert surface.get_at((90, 100))[:3] == LEFT_COLOR
    assert surface.get_at((110, 100))[:3] == RIGHT_COLOR


def test_draw_map_follows_rotation(tmp_path, track_map):
    game = make_game(tmp_path, track_map)
    game.load()
    game.cars.clear()
    surface = pygame.Surface((200, 200))
    camera = Camera(target=(30.0, 20.0), offset=(100.0, 100.0), rotation=90.0, zoom=1.0)
    game.draw_map(surface, camera)
    right = camera.world_to_screen((40.0, 20.0))
    left = camera.world_to_screen((20.0, 20.0))
    assert surface.get_at((round(right[0]), round(right[1])))[:3] == RIGHT_COLOR
    assert surface.get_at((round(left[0]), round(left[1])))[:3] == LEFT_COLOR


def test_draw_does_nothing_in_menu(tmp_path, track_map):
    game = make_game(tmp_path, track_map)
    surface = pygame.Surface((100, 100))
    surface.fill((1, 2, 3))
    game.draw(surface)
    assert surface.get_at((0, 0))[:3] == (1, 2, 3)
    assert surface.get_at((50, 50))[:3] == (1, 2, 3)


def test_cleanup_releases_race(tmp_path, track_map):
    game = make_game(tmp_path, track_map)
    game.load()
    game.cleanup()
    assert len(game.cars) == 0
    assert game.track is None
    assert game.session is None
    assert game.reference == []