"""SMGP messages: header, login, link test, exit, submit, deliver and status report."""