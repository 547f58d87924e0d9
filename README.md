# formulac

formulac is a top-down Formula racing game built on pygame. You drive over a
large track image. A colour mask for the track sets the grip of each surface and
marks the checkpoints. Two modes are built in:

- **1 Jogador (singleplayer)**: a time trial against a ghost car. The ghost
  replays your best lap on that map.
- **2 Jogadores (split-screen)**: two players share one screen. The race starts
  after a traffic-light countdown. The first player to complete the map's number
  of laps wins. A few seconds after the win, the game goes back to the menu.

During a race the HUD shows:

- a speedometer,
- the lap counter,
- the running lap time,
- the standings, with the gap to the car ahead,
- a minimap,
- a blinking "Melhor Volta" banner when someone sets a new best lap.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Playing

Run the game from the directory that holds the `resources/` and `data/`
folders:

```
formulac
```

The command takes these options:

- `--windowed`: run in a window instead of full screen.
- `--width N`, `--height N`: the window size when `--windowed` is given. The
  default is 1280×720.

On the menu you choose:

- the game mode,
- the map (Interlagos or Secret),
- whether debug mode is on. Debug mode shows the track mask in place of the
  track image and adds debug panels to the HUD.

Press **Play** to start.

### Controls

| Action          | Player 1 | Player 2 |
|-----------------|----------|----------|
| Accelerate      | W        | Up       |
| Brake / reverse | S        | Down     |
| Steer left      | A        | Left     |
| Steer right     | D        | Right    |

- **Q** leaves the race and goes back to the menu.
- **Escape** or closing the window quits.
- If your car leaves the track, it is put back at its last checkpoint.
- Kerbs and grass slow the car down more than the tarmac does.

## Files the game reads

The image files under `resources/` are not part of the package. They must be
present, at the paths listed in `formulac.common`:

- track images,
- masks,
- minimaps,
- car sprites.

Missing fonts fall back to pygame's default font. Missing sounds, or no audio
device, mean the game runs silent.

Data files:

- `./data/best_laps/<map>.bin` holds the best lap on a map, which the ghost car
  replays. When the file is missing the game creates it empty. A lap that is
  equal to or faster than the stored one replaces it. The `data/best_laps/`
  directory must already exist for anything to be saved.
- `./data/references/<map>_reference.bin` is an optional reference lap. Every
  half second each car is matched to the nearest frame of this lap, and the
  standings are ordered by that position. Without this file the standings keep
  the order in which the cars were added.

## Frame files

Both kinds of data file are flat sequences of 24-byte little-endian records. Each
record holds, in this order:

1. x, float32
2. y, float32
3. angle, float32
4. four padding bytes
5. time into the lap, float64

`formulac.frames` works with these files:

- `CarFrame` is one record. `CarFrame.pack()` encodes it.
- `read_frames(path)` returns every complete record in the file. It raises
  `FileNotFoundError` if the file does not exist.
- `write_frames(path, frames)` replaces the file's contents with the given
  frames.
- `frame_at(frames, index)` and `last_frame(frames)` return an all-zero frame
  when the index is out of range.

## What it does not do

Nothing in the package records a reference lap. The ranking file under
`data/references/` must be made in some other way. One way is to copy a
best-lap file, since it uses the same format.

There is no control for switching to the third-person camera. The camera always
turns with the car.