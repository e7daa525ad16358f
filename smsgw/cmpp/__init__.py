"""CMPP 2.x/3.x messages: header, connect, link test, terminate, submit, deliver and status report."""