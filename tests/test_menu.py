import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pygame
import pytest

from formulac.common import RED, CurrentMap, GameState, Mode
from formulac.menu import Button, Menu

WIDTH, HEIGHT = 1280, 720


@pytest.fixture
def played():
    return []


@pytest.fixture
def menu(played):
    m = Menu(GameState(), WIDTH, HEIGHT)
    m.setup(lambda: played.append(True))
    return m


def center(menu, button):
    return (button.pos[0] + menu.width / 2, button.pos[1] + menu.height / 2)


FAR_AWAY = (-50, -50)


def test_button_contains_edges():
    button = Button("Play", (10, 20), lambda: None)
    assert button.contains((10, 20), 100, 50)
    assert button.contains((109, 69), 100, 50)
    assert not button.contains((110, 30), 100, 50)
    assert not button.contains((50, 70), 100, 50)
    assert not button.contains((9, 30), 100, 50)


def test_mode_buttons_are_centred_and_evenly_spaced(menu):
    first, second = menu.mode_buttons
    assert first.pos[0] + menu.width / 2 == WIDTH / 2
    assert second.pos[1] - first.pos[1] == menu.padding + menu.height
    assert [b.text for b in menu.mode_buttons] == ["1 Jogador", "2 Jogadores"]


def test_map_buttons_follow_maps(menu):
    assert [b.text for b in menu.map_buttons] == ["Interlagos", "Secret"]
    assert menu.map_buttons[0].pos[0] + menu.width / 2 == WIDTH / 4


def test_main_buttons_in_bottom_right_corner(menu):
    play = menu.play_button
    debug = menu.debug_button
    assert play.pos[0] + menu.width + menu.margin == WIDTH
    assert play.pos[1] + menu.height + menu.margin == HEIGHT
    assert play.pos[1] - debug.pos[1] == menu.height + menu.margin


def test_initial_selection_reflects_state(menu):
    assert [b.selected for b in menu.mode_buttons] == [True, False]
    assert [b.selected for b in menu.map_buttons] == [True, False]
    assert menu.debug_button.selected is False


def test_clicking_mode_selects_it_alone(menu):
    pressed = menu.update(center(menu, menu.mode_buttons[1]), True)
    assert menu.state.mode == Mode.SPLITSCREEN
    assert [b.selected for b in menu.mode_buttons] == [False, True]
    assert pressed == [menu.mode_buttons[1]]


def test_clicking_map_selects_it(menu):
    menu.update(center(menu, menu.map_buttons[1]), True)
    assert menu.state.map == CurrentMap.SECRET
    assert [b.selected for b in menu.map_buttons] == [False, True]


def test_hover_without_click_changes_nothing(menu):
    pressed = menu.update(center(menu, menu.mode_buttons[1]), False)
    assert pressed == []
    assert menu.mode_buttons[1].hovered is True
    assert menu.state.mode == Mode.SINGLEPLAYER


def test_debug_button_toggles(menu):
    point = center(menu, menu.debug_button)
    menu.update(point, True)
    assert menu.state.debug is True
    assert menu.debug_button.selected is True
    menu.update(point, True)
    assert menu.state.debug is False
    assert menu.debug_button.selected is False


def test_play_button_runs_callback(menu, played):
    pressed = menu.update(center(menu, menu.play_button), True)
    assert pressed == [menu.play_button]
    assert played == [True]


def test_click_outside_buttons_does_nothing(menu, played):
    assert menu.update(FAR_AWAY, True) == []
    assert played == []
    assert all(not b.hovered for b in menu.mode_buttons)


def test_draw_marks_selected_button_red(menu):
    menu.update(FAR_AWAY, False)
    surface = pygame.Surface((WIDTH, HEIGHT))
    menu.draw(surface)
    selected = menu.mode_buttons[0]
    plain = menu.mode_buttons[1]
    x = round(selected.pos[0] + menu.width / 2)
    assert tuple(surface.get_at((x, round(selected.pos[1]) + 3)))[:3] == RED[:3]
    assert tuple(surface.get_at((x, round(plain.pos[1]) + 3)))[:3] == (215, 215, 215)