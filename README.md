# retilab

A collection of small networked programs built on plain TCP and UDP
sockets. Each exercise comes as a server and, for most of them, a client
you drive from the terminal. Prompts and messages are in Italian.

Only the standard library is needed.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## The exercises

Every command prints its usage and exits with an error when it gets
missing or non-numeric arguments.

### Authentication server (TCP)

The server keeps `username,password` pairs in `database.txt` in the
working directory. Each connection carries one request: register (`r`),
log in (`l`) or delete (`d`). Names and passwords may not contain a comma
or a newline. The server answers with a text message and closes the
connection; requests are handled one at a time.

```
retilab-auth-server 5000
```

Requests are fixed-size binary records built with
`retilab.auth_server.encode_request` and read with `decode_request`.
The storage is available on its own as `retilab.auth_server.UserDatabase`.

### Message routing (UDP)

A client sends `<ip> <port> <message>` to its server. The server forwards
only the message, that is the first word after the port, to the addressed
client. A client stops listening when it receives `exit`.

```
retilab-routing-server 5002
retilab-routing-client 6000 127.0.0.1 5002
```

### Language chat (TCP)

The server builds a random symmetric distance matrix between the
languages `c`, `c++`, `java`, `python`, `matlab` and `R`, and prints it at
start-up. A client registers with its language and listening port; the
server appends it to `database.txt`. The client then sends `n message`,
and the server delivers the message to the clients of the `n` closest
languages.

```
retilab-chatvm-server 5003
retilab-chatvm-client python 6001 127.0.0.1 5003
```

### Caffè Sbagliato (TCP)

A vending machine that always gets it wrong. You order a product and a
quantity, and the server hands out a different product in a different
quantity, chosen at random. It then sends the updated product list. The
server listens on IPv6 and, where the system allows it, on IPv4 too.

```
retilab-caffe-server 5004
retilab-caffe-client 127.0.0.1 5004
```

### Christmas notes (UDP)

Each client stores notes on the server and can insert (`i`), update
(`u`), delete (`d`) and list (`l`) them. It can also list another
client's notes by that client's id (its IPv4 address shifted left by 16
bits, joined with its port). `q` quits. Notes live in memory only.

```
retilab-christmas-server 5005
retilab-christmas-client 127.0.0.1 5005
```

### Enoteca (TCP)

A wine shop server. Companies insert, update and delete wines; customers
list the product ids and buy from the shared stock. Wines are stored in
`database.txt`, which is emptied when the server starts. A purchase that
asks for more bottles than are left fails and reports the quantity
available.

```
retilab-enoteca-server 5007
```

Messages are fixed-size binary records: `retilab.enoteca.Message.pack`
and `Message.unpack`. The storage is `retilab.enoteca.WineDatabase`.

### Hangman (UDP)

Two players take turns guessing a secret word, either one letter at a
time or the whole word. Each player has three lives; a wrong guess costs
one.

```
retilab-hangman-server 5008
retilab-hangman-client 127.0.0.1 5008
```

### Connect Four (TCP)

Two players on a 6x7 grid. On your turn, choose a column from 1 to 7.
An invalid move is asked again.

```
retilab-connect-four-server 5009
retilab-connect-four-client 127.0.0.1 5009
```

### Tic-tac-toe (TCP)

The server referees a game of tic-tac-toe between two connected players.
Cells are numbered 1 to 9. It listens on IPv6 and, where the system
allows it, on IPv4 too. Each message from the server is a NUL-padded
block of 1024 bytes; each move is a little-endian 32-bit cell number.

```
retilab-tris-server 5010
```

### Rock, paper, scissors (UDP)

The server referees two players, each with a counter set to the given
number. Moves are `r`, `p` and `s`. Every round won takes one from the
winner's counter, and the first player whose counter reaches zero wins
the match.

```
retilab-rps-server 5011 3
retilab-rps-client 127.0.0.1 5011
```

## What is not included

- There is no terminal client for the authentication server, the
  Enoteca server or the tic-tac-toe server; you need a program of your
  own that speaks their binary formats.
- There is no file transfer service.
- There is no beach-kiosk shop with user names; the only shops are
  Caffè Sbagliato and Enoteca.

## Using the game logic directly

The rules live in plain classes that work without a network:
`retilab.connect_four.ConnectFour`, `retilab.tris.TicTacToe`,
`retilab.hangman.Hangman` and `retilab.rps.RockPaperScissors`.

```python
from retilab.connect_four import ConnectFour
from retilab.tris import TicTacToe

game = ConnectFour()
game.play(4)
print(game.render())

tris = TicTacToe()
tris.play(5, 0)
print(tris.outcome())
```