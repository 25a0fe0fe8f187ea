"""Browser page served at ``/``; all game state lives on the server."""

GAME_PAGE = r"""
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Marubatsu</title>
<style>
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
    background: #eef0fb; color: #2c2c2c;
    min-height: 100vh; display: flex;
    align-items: center; justify-content: center;
  }
  .container { max-width: 400px; width: 90%; text-align: center; }
  h1 { font-size: 1.8em; font-weight: 600; color: #4b3fa8; margin-bottom: 6px; }
  .status { font-size: 1em; color: #6b6b80; margin-bottom: 20px; min-height: 1.4em; }
  .status.win { color: #2f7fd8; font-weight: 600; }
  .status.lose { color: #d0405f; font-weight: 600; }
  .status.draw { color: #6b6b80; font-weight: 600; }
  .board {
    display: grid; grid-template-columns: repeat(3, 1fr);
    gap: 8px; margin: 0 auto 24px; max-width: 300px;
  }
  .cell {
    aspect-ratio: 1; background: #fff;
    border: 2px solid #dcdff0; border-radius: 12px;
    font-size: 2.4em; font-weight: 700;
    cursor: pointer; display: flex;
    align-items: center; justify-content: center;
  }
  .cell:disabled { cursor: default; }
  .cell.x { color: #fff; background: #2f9fd8; border-color: #2f7fd8; }
  .cell.o { color: #fff; background: #e05a7a; border-color: #d0405f; }
  .cell.winner { box-shadow: 0 0 0 4px #f5c542; }
  .scores {
    display: flex; justify-content: center; gap: 24px;
    margin-bottom: 20px; font-size: 0.9em; color: #6b6b80;
  }
  .scores span { font-weight: 600; color: #3a3a3a; }
  .btn {
    font-family: inherit; font-weight: 600; font-size: 1em;
    width: 100%; padding: 12px; border: none; border-radius: 10px;
    cursor: pointer; color: #fff; background: #5b4fd8;
  }
</style>
</head>
<body>
<div class="container">
  <h1>Marubatsu</h1>
  <div class="scores">
    Wins: <span id="wins">0</span>
    Losses: <span id="losses">0</span>
    Draws: <span id="draws">0</span>
  </div>
  <div class="status" id="status"></div>
  <div class="board" id="board"></div>
  <button class="btn" onclick="resetGame()">Reset Game</button>
</div>
<script>
let game = null, socket = null;

async function api(method, path, body) {
  const res = await fetch(path, {
    method,
    headers: body ? { 'Content-Type': 'application/json' } : {},
    body: body ? JSON.stringify(body) : undefined,
  });
  const data = await res.json();
  if (!res.ok) throw new Error(data.detail || data.error || res.statusText);
  return data;
}

async function refreshStats() {
  try {
    const stats = await api('GET', '/stats');
    document.getElementById('wins').textContent = stats.wins;
    document.getElementById('losses').textContent = stats.losses;
    document.getElementById('draws').textContent = stats.draws;
  } catch (err) {
    console.error(err);
  }
}

function render(state) {
  const previous = game;
  game = state;
  const el = document.getElementById('board');
  el.innerHTML = '';
  state.board.forEach((mark, i) => {
    const cell = document.createElement('button');
    cell.className = 'cell' + (mark ? ' ' + mark.toLowerCase() : '');
    if (state.line && state.line.includes(i)) cell.classList.add('winner');
    cell.textContent = mark || '';
    cell.disabled = !!mark || !state.active || state.turn !== state.human;
    cell.addEventListener('click', () => play(i));
    el.appendChild(cell);
  });
  const status = document.getElementById('status');
  const labels = { win: 'You win!', lose: 'AI wins!', draw: "It's a draw!" };
  status.className = 'status' + (state.result ? ' ' + state.result : '');
  status.textContent = state.result ? labels[state.result]
    : state.turn === state.human ? 'Your turn (' + state.human + ')' : 'AI is thinking...';
  if (state.result && (!previous || previous.active)) refreshStats();
}

function listen(id) {
  if (socket) socket.close();
  const scheme = location.protocol === 'https:' ? 'wss' : 'ws';
  socket = new WebSocket(scheme + '://' + location.host + '/ws/game/' + id);
  socket.onmessage = (event) => render(JSON.parse(event.data));
}

async function play(i) {
  try {
    render(await api('POST', '/game/' + game.id + '/move', { index: i }));
  } catch (err) {
    console.error(err);
  }
}

async function resetGame() {
  render(await api('POST', '/game/' + game.id + '/reset'));
}

async function start() {
  const state = await api('POST', '/game');
  render(state);
  listen(state.id);
  refreshStats();
}

start();
</script>
</body>
</html>
"""
